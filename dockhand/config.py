"""Configuration loading for the :mod:`dockhand` toolkit."""

from __future__ import annotations

import contextlib
import contextvars
import dataclasses as dc
import typing as typ
from collections import abc as cabc
from pathlib import Path

from cyclopts.config import Toml

from dockhand.errors import DockhandError
from dockhand.utils import normalise_repo_root

CONFIG_FILENAME = "dockhand.toml"

Column = typ.Literal["review", "test", "unknown"]


class ConfigurationError(DockhandError):
    """Raised when the :mod:`dockhand` configuration is invalid."""


class ConfigurationNotLoadedError(ConfigurationError):
    """Raised when code accesses the configuration before it is loaded."""


def _reject_unknown(
    mapping: cabc.Mapping[str, typ.Any], allowed: set[str], section: str
) -> None:
    """Raise when ``mapping`` carries keys outside ``allowed``."""
    unknown = set(mapping) - allowed
    if unknown:
        joined = ", ".join(sorted(unknown))
        message = f"Unknown {section} option(s): {joined}."
        raise ConfigurationError(message)


@dc.dataclass(frozen=True, slots=True)
class SyncStructureConfig:
    """Settings for the ``sync-structure`` command."""

    structure_file: str = "db/structure.sql"
    migrations_dir: str = "db/migrate"
    migration_glob: str = "*.rb"
    remote: str = "origin"

    @classmethod
    def from_mapping(
        cls, mapping: cabc.Mapping[str, typ.Any] | None
    ) -> SyncStructureConfig:
        """Create a :class:`SyncStructureConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        fields = {"structure_file", "migrations_dir", "migration_glob", "remote"}
        _reject_unknown(mapping, fields, "sync_structure")
        defaults = cls()
        return cls(
            **{
                name: _string_value(
                    mapping.get(name, getattr(defaults, name)),
                    f"sync_structure.{name}",
                )
                for name in fields
            }
        )


@dc.dataclass(frozen=True, slots=True)
class ExcludeLabels:
    """Issue labels that deselect review items by column."""

    review: tuple[str, ...] = ()
    test: tuple[str, ...] = ()

    @classmethod
    def from_mapping(
        cls, mapping: cabc.Mapping[str, typ.Any] | None, field_name: str
    ) -> ExcludeLabels:
        """Create an :class:`ExcludeLabels` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _reject_unknown(mapping, {"review", "test"}, field_name)
        return cls(
            review=_string_tuple(mapping.get("review"), f"{field_name}.review"),
            test=_string_tuple(mapping.get("test"), f"{field_name}.test"),
        )

    def for_column(self, column: Column) -> tuple[str, ...]:
        """Return the labels excluded in ``column``."""
        if column == "review":
            return self.review
        if column == "test":
            return self.test
        return ()


@dc.dataclass(frozen=True, slots=True)
class BoardConfig:
    """Workflow columns for one tracker project."""

    review_statuses: tuple[str, ...] = ("Reviewing",)
    test_statuses: tuple[str, ...] = ()
    exclude_labels: ExcludeLabels = dc.field(default_factory=ExcludeLabels)

    @classmethod
    def from_mapping(
        cls, mapping: cabc.Mapping[str, typ.Any], field_name: str
    ) -> BoardConfig:
        """Create a :class:`BoardConfig` from a TOML table mapping."""
        allowed = {"review_statuses", "test_statuses", "exclude_labels"}
        _reject_unknown(mapping, allowed, field_name)
        defaults = cls()
        review = mapping.get("review_statuses")
        return cls(
            review_statuses=(
                defaults.review_statuses
                if review is None
                else _string_tuple(review, f"{field_name}.review_statuses")
            ),
            test_statuses=_string_tuple(
                mapping.get("test_statuses"), f"{field_name}.test_statuses"
            ),
            exclude_labels=ExcludeLabels.from_mapping(
                _optional_mapping(
                    mapping.get("exclude_labels"), f"{field_name}.exclude_labels"
                ),
                f"{field_name}.exclude_labels",
            ),
        )

    @property
    def statuses(self) -> tuple[str, ...]:
        """Return review statuses followed by test statuses."""
        return (*self.review_statuses, *self.test_statuses)

    def column_for(self, status: str) -> Column:
        """Return the column that ``status`` belongs to."""
        if status in self.review_statuses:
            return "review"
        if status in self.test_statuses:
            return "test"
        return "unknown"


@dc.dataclass(frozen=True, slots=True)
class ReviewDigestConfig:
    """Settings for the ``review-digest`` command."""

    html_output: str = "slack_prs.html"
    repositories: cabc.Mapping[str, str] = dc.field(default_factory=dict)
    boards: cabc.Mapping[str, BoardConfig] = dc.field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls, mapping: cabc.Mapping[str, typ.Any] | None
    ) -> ReviewDigestConfig:
        """Create a :class:`ReviewDigestConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _reject_unknown(
            mapping, {"html_output", "repositories", "boards"}, "review_digest"
        )
        boards_table = _optional_mapping(
            mapping.get("boards"), "review_digest.boards"
        )
        boards: dict[str, BoardConfig] = {}
        for project, board in (boards_table or {}).items():
            field_name = f"review_digest.boards.{project}"
            board_mapping = _optional_mapping(board, field_name)
            boards[project] = BoardConfig.from_mapping(board_mapping or {}, field_name)
        return cls(
            html_output=_string_value(
                mapping.get("html_output", cls().html_output),
                "review_digest.html_output",
            ),
            repositories=_string_mapping(
                mapping.get("repositories"), "review_digest.repositories"
            ),
            boards=boards,
        )

    def board_for(self, project: str) -> BoardConfig | None:
        """Return the configured board for ``project`` if there is one."""
        return self.boards.get(project)

    def abbreviate(self, repository: str) -> str:
        """Return the short label for ``repository``."""
        return self.repositories.get(repository, repository)


@dc.dataclass(frozen=True, slots=True)
class BackportConfig:
    """Settings for the ``backport`` command."""

    suffix: str = "-release"
    remote: str = "origin"
    ticket_url: str | None = None

    @classmethod
    def from_mapping(
        cls, mapping: cabc.Mapping[str, typ.Any] | None
    ) -> BackportConfig:
        """Create a :class:`BackportConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _reject_unknown(mapping, {"suffix", "remote", "ticket_url"}, "backport")
        defaults = cls()
        ticket_url = mapping.get("ticket_url")
        return cls(
            suffix=_string_value(
                mapping.get("suffix", defaults.suffix), "backport.suffix"
            ),
            remote=_string_value(
                mapping.get("remote", defaults.remote), "backport.remote"
            ),
            ticket_url=(
                None
                if ticket_url is None
                else _string_value(ticket_url, "backport.ticket_url").rstrip("/")
            ),
        )


@dc.dataclass(frozen=True, slots=True)
class DockhandConfig:
    """Strongly-typed representation of ``dockhand.toml``."""

    sync_structure: SyncStructureConfig = dc.field(default_factory=SyncStructureConfig)
    review_digest: ReviewDigestConfig = dc.field(default_factory=ReviewDigestConfig)
    backport: BackportConfig = dc.field(default_factory=BackportConfig)

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any]) -> DockhandConfig:
        """Create a :class:`DockhandConfig` from a parsed configuration mapping."""
        sections = {"sync_structure", "review_digest", "backport"}
        unknown = set(mapping) - sections
        if unknown:
            joined = ", ".join(sorted(unknown))
            message = f"Unknown configuration section(s): {joined}."
            raise ConfigurationError(message)
        return cls(
            sync_structure=SyncStructureConfig.from_mapping(
                _optional_mapping(mapping.get("sync_structure"), "sync_structure")
            ),
            review_digest=ReviewDigestConfig.from_mapping(
                _optional_mapping(mapping.get("review_digest"), "review_digest")
            ),
            backport=BackportConfig.from_mapping(
                _optional_mapping(mapping.get("backport"), "backport")
            ),
        )


_active_config: contextvars.ContextVar[DockhandConfig] = contextvars.ContextVar(
    "dockhand_active_config"
)


def build_loader(repo_root: Path) -> Toml:
    """Return a Cyclopts loader for ``dockhand.toml`` in ``repo_root``."""
    resolved = normalise_repo_root(repo_root)
    return Toml(
        path=resolved / CONFIG_FILENAME,
        must_exist=False,
        search_parents=False,
        allow_unknown=True,
    )


def load_from_loader(loader: Toml) -> DockhandConfig:
    """Load and validate configuration using ``loader``.

    A missing file yields the default configuration.
    """
    if not Path(loader.path).is_file():
        return DockhandConfig()
    try:
        raw = loader.config
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    if not isinstance(raw, cabc.Mapping):
        message = "Configuration root must be a TOML table."
        raise ConfigurationError(message)
    return DockhandConfig.from_mapping(raw)


def load_configuration(repo_root: Path) -> DockhandConfig:
    """Load configuration for ``repo_root`` using Cyclopts."""
    loader = build_loader(repo_root)
    return load_from_loader(loader)


@contextlib.contextmanager
def use_configuration(configuration: DockhandConfig) -> typ.Iterator[None]:
    """Set ``configuration`` as the active configuration for the current context."""
    token = _active_config.set(configuration)
    try:
        yield
    finally:
        _active_config.reset(token)


def current_configuration() -> DockhandConfig:
    """Return the active configuration or raise if none has been set."""
    try:
        return _active_config.get()
    except LookupError as exc:
        message = "Configuration has not been loaded yet."
        raise ConfigurationNotLoadedError(message) from exc


def ensure_configuration(
    configuration: DockhandConfig | None, repo_root: Path
) -> DockhandConfig:
    """Return the active configuration, loading it from disk when required."""
    if configuration is not None:
        return configuration
    try:
        return current_configuration()
    except ConfigurationNotLoadedError:
        return load_configuration(repo_root)


def _validate_string_sequence(
    sequence: cabc.Sequence[typ.Any], field_name: str
) -> tuple[str, ...]:
    """Validate that ``sequence`` contains only strings and return them."""
    items: list[str] = []
    for index, entry in enumerate(sequence):
        if not isinstance(entry, str):
            message = (
                f"{field_name}[{index}] must be a string, got {type(entry).__name__}."
            )
            raise ConfigurationError(message)
        items.append(entry)
    return tuple(items)


def _string_tuple(value: object, field_name: str) -> tuple[str, ...]:
    """Return a tuple of strings derived from ``value``."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, cabc.Sequence) and not isinstance(value, str | bytes):
        return _validate_string_sequence(value, field_name)
    message = (
        f"{field_name} must be a string or a sequence of strings; "
        f"received {type(value).__name__}."
    )
    raise ConfigurationError(message)


def _string_value(value: object, field_name: str) -> str:
    """Return ``value`` when it is a non-empty string."""
    if isinstance(value, str) and value:
        return value
    message = f"{field_name} must be a non-empty string; received {value!r}."
    raise ConfigurationError(message)


def _string_mapping(value: object, field_name: str) -> dict[str, str]:
    """Return ``value`` as a ``str`` to ``str`` dictionary."""
    mapping = _optional_mapping(value, field_name)
    if mapping is None:
        return {}
    return {
        str(key): _string_value(entry, f"{field_name}.{key}")
        for key, entry in mapping.items()
    }


def _optional_mapping(
    value: object, field_name: str
) -> cabc.Mapping[str, typ.Any] | None:
    """Ensure ``value`` is a mapping if provided."""
    if value is None:
        return None
    if isinstance(value, cabc.Mapping):
        return value
    message = f"{field_name} must be a TOML table; received {type(value).__name__}."
    raise ConfigurationError(message)
