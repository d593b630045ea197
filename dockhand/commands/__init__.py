"""Subcommand implementations for :mod:`dockhand`."""

from __future__ import annotations

from . import backport, inspect_ticket, review_digest, sync_structure

__all__ = ["backport", "inspect_ticket", "review_digest", "sync_structure"]
