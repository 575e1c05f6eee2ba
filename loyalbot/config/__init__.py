"""Configuration module for loyalbot."""

from .secrets import (
    ApiConfig,
    Secrets,
    SecretsLoadError,
    TelegramConfig,
    load_secrets,
)
from .settings import AppSettings, SettingsValidationError, load_settings

__all__ = [
    "ApiConfig",
    "AppSettings",
    "Secrets",
    "SecretsLoadError",
    "SettingsValidationError",
    "TelegramConfig",
    "load_secrets",
    "load_settings",
]
