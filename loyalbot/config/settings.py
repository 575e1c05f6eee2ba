"""Typed process settings loaded from static environment variables."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

LogLevel = str

ENV_DB_PATH = "LOYALBOT_DB_PATH"
ENV_BIND = "LOYALBOT_BIND"
ENV_LOG_LEVEL = "LOYALBOT_LOG_LEVEL"
ENV_SECRETS_FILE = "LOYALBOT_SECRETS_FILE"  # noqa: S105
ENV_HTTP_TIMEOUT_SECONDS = "LOYALBOT_HTTP_TIMEOUT_SECONDS"

DEFAULT_DB_PATH = Path("/data/loyalbot.db")
DEFAULT_BIND = "127.0.0.1"
DEFAULT_LOG_LEVEL: LogLevel = "INFO"
DEFAULT_SECRETS_FILE = Path("secrets.toml")
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0

VALID_LOG_LEVELS: frozenset[LogLevel] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"},
)


class SettingsValidationError(ValueError):
    """Raised when static settings env vars contain invalid values."""

    @classmethod
    def for_empty_value(cls, env_var: str) -> SettingsValidationError:
        """Build error for empty non-optional env var values."""
        message = f"Invalid {env_var}: value cannot be empty."
        return cls(message)

    @classmethod
    def for_invalid_choice(
        cls,
        env_var: str,
        value: str,
        allowed_values: str,
    ) -> SettingsValidationError:
        """Build error for enum-like env vars with fixed allowlists."""
        message = f"Invalid {env_var}: {value!r}. Allowed values: {allowed_values}."
        return cls(message)

    @classmethod
    def for_non_positive_number(cls, env_var: str, value: str) -> SettingsValidationError:
        """Build error for numeric env vars that must be greater than zero."""
        message = f"Invalid {env_var}: {value!r}. Expected a positive number."
        return cls(message)


@dataclass(frozen=True, slots=True)
class AppSettings:
    """Resolved static configuration values for process startup."""

    db_path: Path
    bind: str
    log_level: LogLevel
    secrets_file: Path
    http_timeout_seconds: float


def load_settings(environ: Mapping[str, str] | None = None) -> AppSettings:
    """Load and validate static settings from process environment."""
    env = os.environ if environ is None else environ

    return AppSettings(
        db_path=_read_path(env, ENV_DB_PATH, DEFAULT_DB_PATH),
        bind=_read_bind(env),
        log_level=_read_log_level(env),
        secrets_file=_read_path(env, ENV_SECRETS_FILE, DEFAULT_SECRETS_FILE),
        http_timeout_seconds=_read_http_timeout(env),
    )


def _read_path(environ: Mapping[str, str], env_var: str, default: Path) -> Path:
    raw = environ.get(env_var)
    if raw is None:
        return default
    value = raw.strip()
    if not value:
        raise SettingsValidationError.for_empty_value(env_var)
    return Path(value).expanduser()


def _read_bind(environ: Mapping[str, str]) -> str:
    raw = environ.get(ENV_BIND)
    if raw is None:
        return DEFAULT_BIND
    value = raw.strip()
    if not value:
        raise SettingsValidationError.for_empty_value(ENV_BIND)
    return value


def _read_log_level(environ: Mapping[str, str]) -> LogLevel:
    raw = environ.get(ENV_LOG_LEVEL)
    if raw is None:
        return DEFAULT_LOG_LEVEL
    value = raw.strip().upper()
    if value in VALID_LOG_LEVELS:
        return value
    allowed = ", ".join(sorted(VALID_LOG_LEVELS))
    raise SettingsValidationError.for_invalid_choice(ENV_LOG_LEVEL, raw, allowed)


def _read_http_timeout(environ: Mapping[str, str]) -> float:
    raw = environ.get(ENV_HTTP_TIMEOUT_SECONDS)
    if raw is None:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise SettingsValidationError.for_non_positive_number(
            ENV_HTTP_TIMEOUT_SECONDS,
            raw,
        ) from exc
    if not math.isfinite(value) or value <= 0:
        raise SettingsValidationError.for_non_positive_number(
            ENV_HTTP_TIMEOUT_SECONDS,
            raw,
        )
    return value
