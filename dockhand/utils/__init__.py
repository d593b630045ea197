"""Utility helpers for the :mod:`dockhand` package."""

from __future__ import annotations

from .fs import read_text_preserving_newlines, write_atomic_text
from .path import normalise_repo_root

__all__ = [
    "normalise_repo_root",
    "read_text_preserving_newlines",
    "write_atomic_text",
]
