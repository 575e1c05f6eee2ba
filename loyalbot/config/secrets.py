"""Secrets file loading for backend, Telegram and front-end configuration."""

from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:
    from pathlib import Path


class SecretsLoadError(RuntimeError):
    """Raised when the secrets file cannot be read or validated."""

    @classmethod
    def for_unreadable_file(cls, path: Path, *, details: str) -> SecretsLoadError:
        """Build error for missing or unreadable secrets files."""
        return cls(f"Unable to read secrets file {path.as_posix()}: {details}")

    @classmethod
    def for_invalid_toml(cls, path: Path, *, details: str) -> SecretsLoadError:
        """Build error for secrets files that are not valid TOML."""
        return cls(f"Secrets file {path.as_posix()} is not valid TOML: {details}")

    @classmethod
    def for_invalid_schema(cls, path: Path, *, details: str) -> SecretsLoadError:
        """Build error for secrets files with missing or mistyped keys."""
        return cls(f"Secrets file {path.as_posix()} has invalid values: {details}")


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TelegramConfig(_FrozenModel):
    """Bot credentials and the operators allowed to manage accounts."""

    api_id: int = Field(gt=0)
    api_hash: str = Field(min_length=1)
    bot_token: str = Field(min_length=1)
    maintainer_ids: tuple[int, ...] = ()

    def is_operator(self, user_id: int | None) -> bool:
        """Return True when the user may issue account-management commands."""
        return user_id is not None and user_id in self.maintainer_ids


class ApiConfig(_FrozenModel):
    """Backend root, per-operation API versions and registration defaults."""

    api_root: str = Field(min_length=1)
    brand_name: str = Field(min_length=1)
    anonymous_csrf: str = Field(min_length=1)
    legal_ids: tuple[str, ...] = ()
    module_version: str = Field(min_length=1)
    sms_api_version: str = Field(min_length=1)
    next_step_version: str = Field(min_length=1)
    create_account_version: str = Field(min_length=1)
    login_api_version: str = Field(min_length=1)
    promo_sync_api_version: str = Field(min_length=1)


class Secrets(_FrozenModel):
    """Top-level secrets document."""

    telegram_config: TelegramConfig
    api_config: ApiConfig
    ean_frontend: str
    cdn_root: str | None = None
    api_token: str = Field(min_length=1)


def load_secrets(path: Path) -> Secrets:
    """Read and validate the TOML secrets file at `path`."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SecretsLoadError.for_unreadable_file(path, details=str(exc)) from exc
    try:
        document = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise SecretsLoadError.for_invalid_toml(path, details=str(exc)) from exc
    try:
        return Secrets.model_validate(document)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in exc.errors()
        )
        raise SecretsLoadError.for_invalid_schema(path, details=fields) from exc
