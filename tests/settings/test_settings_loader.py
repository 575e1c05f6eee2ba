"""Tests for static environment settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from loyalbot.config import SettingsValidationError, load_settings

DEFAULT_TIMEOUT = 15.0


def test_load_settings_uses_defaults_when_env_absent() -> None:
    """Ensure settings resolve to default values when env vars are missing."""
    settings = load_settings({})

    if settings.db_path != Path("/data/loyalbot.db"):
        raise AssertionError
    if settings.bind != "127.0.0.1":
        raise AssertionError
    if settings.log_level != "INFO":
        raise AssertionError
    if settings.secrets_file != Path("secrets.toml"):
        raise AssertionError
    if settings.http_timeout_seconds != DEFAULT_TIMEOUT:
        raise AssertionError


def test_load_settings_reads_overrides() -> None:
    """Ensure every env var overrides its default."""
    settings = load_settings(
        {
            "LOYALBOT_DB_PATH": "/tmp/bot.db",  # noqa: S108
            "LOYALBOT_BIND": "0.0.0.0",  # noqa: S104
            "LOYALBOT_LOG_LEVEL": "debug",
            "LOYALBOT_SECRETS_FILE": "/etc/loyalbot/secrets.toml",
            "LOYALBOT_HTTP_TIMEOUT_SECONDS": "2.5",
        },
    )

    if settings.db_path != Path("/tmp/bot.db"):  # noqa: S108
        raise AssertionError
    if settings.bind != "0.0.0.0":  # noqa: S104
        raise AssertionError
    if settings.log_level != "DEBUG":
        raise AssertionError
    if settings.secrets_file != Path("/etc/loyalbot/secrets.toml"):
        raise AssertionError
    if settings.http_timeout_seconds != 2.5:  # noqa: PLR2004
        raise AssertionError


@pytest.mark.parametrize(
    ("env", "message"),
    [
        (
            {"LOYALBOT_LOG_LEVEL": "verbose"},
            (
                "Invalid LOYALBOT_LOG_LEVEL: 'verbose'. "
                "Allowed values: CRITICAL, DEBUG, ERROR, INFO, WARNING."
            ),
        ),
        (
            {"LOYALBOT_DB_PATH": "   "},
            "Invalid LOYALBOT_DB_PATH: value cannot be empty.",
        ),
        (
            {"LOYALBOT_BIND": ""},
            "Invalid LOYALBOT_BIND: value cannot be empty.",
        ),
        (
            {"LOYALBOT_HTTP_TIMEOUT_SECONDS": "0"},
            "Invalid LOYALBOT_HTTP_TIMEOUT_SECONDS: '0'. Expected a positive number.",
        ),
        (
            {"LOYALBOT_HTTP_TIMEOUT_SECONDS": "soon"},
            "Invalid LOYALBOT_HTTP_TIMEOUT_SECONDS: 'soon'. Expected a positive number.",
        ),
        (
            {"LOYALBOT_HTTP_TIMEOUT_SECONDS": "inf"},
            "Invalid LOYALBOT_HTTP_TIMEOUT_SECONDS: 'inf'. Expected a positive number.",
        ),
    ],
)
def test_load_settings_rejects_invalid_values(
    env: dict[str, str],
    message: str,
) -> None:
    """Ensure invalid values fail with deterministic validation text."""
    with pytest.raises(SettingsValidationError) as exc_info:
        _ = load_settings(env)

    if str(exc_info.value) != message:
        raise AssertionError
