"""Tests for structured logging initialization and formatting."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, cast

from loyalbot.config.logging import correlation_id, init_logging

if TYPE_CHECKING:
    import pytest


def test_init_logging_sets_root_and_library_levels() -> None:
    """Ensure init_logging sets the root level and quiets chatty libraries."""
    init_logging("INFO")
    if logging.getLogger().level != logging.INFO:
        raise AssertionError
    if logging.getLogger("telethon").level != logging.WARNING:
        raise AssertionError
    if logging.getLogger("httpx").level != logging.WARNING:
        raise AssertionError

    init_logging("WARNING")
    if logging.getLogger().level != logging.WARNING:
        raise AssertionError


def test_json_formatter_outputs_core_fields(capsys: pytest.CaptureFixture[str]) -> None:
    """Ensure each record renders as one parseable JSON line."""
    init_logging("INFO")
    logging.getLogger("test_logger").info("Structured message")

    data = cast("dict[str, object]", json.loads(capsys.readouterr().out.strip()))
    if data["message"] != "Structured message":
        raise AssertionError
    if data["level"] != "INFO" or data["logger"] != "test_logger":
        raise AssertionError
    if "timestamp" not in data:
        raise AssertionError
    if data.get("correlation_id") is not None:
        raise AssertionError


def test_json_formatter_includes_correlation_id_and_extras(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Ensure chat correlation ids and extra fields reach the JSON root."""
    init_logging("INFO")
    token = correlation_id.set("chat-42")
    try:
        logging.getLogger("test_corr").info(
            "Account stored",
            extra={"title": "store", "replaced": False},
        )
    finally:
        correlation_id.reset(token)

    data = cast("dict[str, object]", json.loads(capsys.readouterr().out.strip()))
    if data.get("correlation_id") != "chat-42":
        raise AssertionError
    if data.get("title") != "store" or data.get("replaced") is not False:
        raise AssertionError


def test_json_formatter_protects_core_keys_from_extras(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Ensure extras cannot overwrite the core fields."""
    init_logging("INFO")
    logging.getLogger("test_protect").info("Core", extra={"level": "spoofed"})

    data = cast("dict[str, object]", json.loads(capsys.readouterr().out.strip()))
    if data["level"] != "INFO" or data.get("extra_level") != "spoofed":
        raise AssertionError


def test_init_logging_debug_lets_library_records_through() -> None:
    """Ensure DEBUG lifts the quieting of telethon and httpx."""
    init_logging("WARNING")
    init_logging("DEBUG")

    if logging.getLogger("telethon").level != logging.DEBUG:
        raise AssertionError
    if logging.getLogger("httpx").level != logging.DEBUG:
        raise AssertionError
