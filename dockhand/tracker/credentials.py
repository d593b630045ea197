"""Issue tracker credentials sourced from the environment."""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

from dotenv import load_dotenv

from dockhand.errors import DockhandError

if typ.TYPE_CHECKING:
    from pathlib import Path

HOST_ENV_VAR: typ.Final[str] = "JIRA_HOST"
EMAIL_ENV_VAR: typ.Final[str] = "JIRA_EMAIL"
TOKEN_ENV_VAR: typ.Final[str] = "JIRA_TOKEN"
DOTENV_FILENAME: typ.Final[str] = ".env"


class MissingCredentialsError(DockhandError):
    """Raised when required tracker credentials are absent."""

    def __init__(self, missing: typ.Sequence[str]) -> None:
        """List every missing environment variable."""
        joined = ", ".join(missing)
        super().__init__(
            f"Missing required environment variable(s): {joined}. "
            f"Set them in the environment or in a {DOTENV_FILENAME} file."
        )
        self.missing = tuple(missing)


@dc.dataclass(frozen=True, slots=True)
class TrackerCredentials:
    """Connection details for the tracker REST API."""

    host: str
    email: str
    token: str = dc.field(repr=False)

    @classmethod
    def from_environ(
        cls, environ: typ.Mapping[str, str] | None = None
    ) -> TrackerCredentials:
        """Build credentials from ``environ``, reporting all missing fields."""
        source = os.environ if environ is None else environ
        values = {
            name: source.get(name, "").strip()
            for name in (HOST_ENV_VAR, EMAIL_ENV_VAR, TOKEN_ENV_VAR)
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise MissingCredentialsError(missing)
        return cls(
            host=values[HOST_ENV_VAR].rstrip("/"),
            email=values[EMAIL_ENV_VAR],
            token=values[TOKEN_ENV_VAR],
        )


def load_credentials(repo_root: Path) -> TrackerCredentials:
    """Load ``.env`` from ``repo_root`` if present and validate credentials."""
    dotenv_path = repo_root / DOTENV_FILENAME
    if dotenv_path.is_file():
        load_dotenv(dotenv_path, override=False)
    return TrackerCredentials.from_environ()
