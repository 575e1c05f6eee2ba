"""Shared pytest fixtures for storage, backend and bot tests."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from loyalbot.config import ApiConfig, AppSettings, TelegramConfig
from loyalbot.storage import create_storage_runtime, dispose_storage_runtime
from tests.support import OPERATOR_ID

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from loyalbot.storage import StorageRuntime


ACCOUNTS_TABLE_SQL = """
CREATE TABLE accounts (
    title VARCHAR(255) PRIMARY KEY,
    phone_number VARCHAR(32) NOT NULL,
    card_number VARCHAR(64) NOT NULL,
    external_customer_id VARCHAR(255) NOT NULL,
    auth_token TEXT NOT NULL,
    session_token_a TEXT NOT NULL,
    session_token_b TEXT NOT NULL,
    csrf_token TEXT NOT NULL,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


@pytest.fixture
def api_config() -> ApiConfig:
    """Backend configuration pointing at a fake root."""
    return ApiConfig(
        api_root="https://loyalty.test/screenservices/",
        brand_name="Brand",
        anonymous_csrf="anon-csrf",
        legal_ids=("terms-1", "privacy-2"),
        module_version="mod-v1",
        sms_api_version="sms-v1",
        next_step_version="step-v1",
        create_account_version="create-v1",
        login_api_version="login-v1",
        promo_sync_api_version="promo-v1",
    )


@pytest.fixture
def telegram_config() -> TelegramConfig:
    """Bot credentials with a single operator."""
    return TelegramConfig(
        api_id=12345,
        api_hash="hash",
        bot_token="bot:token",  # noqa: S106
        maintainer_ids=(OPERATOR_ID,),
    )


@pytest.fixture
def sqlite_settings(tmp_path: Path) -> AppSettings:
    """Per-test settings whose database lives under tmp_path."""
    return AppSettings(
        db_path=tmp_path / "loyalbot-test.sqlite3",
        bind="127.0.0.1",
        log_level="INFO",
        secrets_file=Path("secrets.toml"),
        http_timeout_seconds=5.0,
    )


@pytest.fixture
async def storage_runtime(sqlite_settings: AppSettings) -> AsyncIterator[StorageRuntime]:
    """Storage runtime over a fresh SQLite file with the accounts table."""
    runtime = create_storage_runtime(sqlite_settings)
    async with runtime.write_engine.begin() as connection:
        _ = await connection.exec_driver_sql(ACCOUNTS_TABLE_SQL)
    try:
        yield runtime
    finally:
        await dispose_storage_runtime(runtime)
