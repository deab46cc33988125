import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


DEFAULT_OUTPUT_NAME = "step-count.txt"


class ConfigError(RuntimeError):
    """Raised when required configuration is missing."""


@dataclass
class AppConfig:
    """Application configuration for the step reporter.

    Attributes
    ----------
    client_id: str
        Google OAuth client id.
    client_secret: str
        Google OAuth client secret.
    refresh_token: str | None
        Long-lived refresh token obtained with ``get-refresh-token``.
        Only the reporting flow needs it.
    output_file: Path | None
        Where the report line goes. Falls back to ``step-count.txt`` in the
        working directory.
    """
    client_id: str
    client_secret: str
    refresh_token: Optional[str] = None
    output_file: Optional[Path] = None

    @property
    def output_path(self) -> Path:
        return self.output_file or Path.cwd() / DEFAULT_OUTPUT_NAME

    def require_refresh_token(self) -> str:
        if not self.refresh_token:
            raise ConfigError("GOOGLE_REFRESH_TOKEN is not set in the environment or .env file")
        return self.refresh_token


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build an AppConfig from environment variables, failing fast on missing credentials."""
    env = os.environ if environ is None else environ

    client_id = _clean(env.get("GOOGLE_CLIENT_ID"))
    client_secret = _clean(env.get("GOOGLE_CLIENT_SECRET"))
    if not client_id or not client_secret:
        raise ConfigError(
            "Missing Google credentials. Please set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET "
            "in your environment or .env file."
        )

    # Blank means unset; a non-blank path is used untrimmed
    output = env.get("OUTPUT_FILE_PATH")
    if output is not None and not output.strip():
        output = None
    return AppConfig(
        client_id=client_id,
        client_secret=client_secret,
        refresh_token=_clean(env.get("GOOGLE_REFRESH_TOKEN")),
        output_file=Path(output) if output else None,
    )
