"""Tests for the Alembic migration that creates the accounts table."""

from __future__ import annotations

import os
import sqlite3
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ALEMBIC_ENV = PROJECT_ROOT / "alembic" / "env.py"
BATCH_MODE_OCCURRENCES_REQUIRED = 2
EXPECTED_COLUMNS = {
    "title",
    "phone_number",
    "card_number",
    "external_customer_id",
    "auth_token",
    "session_token_a",
    "session_token_b",
    "csrf_token",
    "created_at",
    "updated_at",
}


def test_upgrade_head_creates_accounts_table(tmp_path: Path) -> None:
    """Ensure `alembic upgrade head` builds the accounts schema on an empty DB."""
    db_path = tmp_path / "migrate.sqlite3"

    result = _run_alembic(("upgrade", "head"), db_path)

    if result.returncode != 0:
        raise AssertionError(result.stderr)
    with sqlite3.connect(db_path) as connection:
        rows = connection.execute("PRAGMA table_info(accounts)").fetchall()
    if {row[1] for row in rows} != EXPECTED_COLUMNS:
        raise AssertionError


def test_downgrade_base_drops_accounts_table(tmp_path: Path) -> None:
    """Ensure the migration is reversible."""
    db_path = tmp_path / "downgrade.sqlite3"
    if _run_alembic(("upgrade", "head"), db_path).returncode != 0:
        raise AssertionError

    result = _run_alembic(("downgrade", "base"), db_path)

    if result.returncode != 0:
        raise AssertionError(result.stderr)
    with sqlite3.connect(db_path) as connection:
        tables = connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'accounts'",
        ).fetchall()
    if tables:
        raise AssertionError


def test_alembic_batch_mode_is_enabled_in_env_configuration() -> None:
    """Ensure Alembic env enables SQLite render_as_batch mode in both modes."""
    env_text = ALEMBIC_ENV.read_text(encoding="utf-8")
    if env_text.count("render_as_batch=True") < BATCH_MODE_OCCURRENCES_REQUIRED:
        raise AssertionError


def _run_alembic(
    command_parts: tuple[str, ...],
    db_path: Path,
) -> subprocess.CompletedProcess[str]:
    alembic_executable = Path(sys.executable).with_name("alembic")
    if not alembic_executable.exists():
        raise AssertionError
    env = os.environ.copy()
    env["LOYALBOT_DB_PATH"] = db_path.as_posix()
    return subprocess.run(  # noqa: S603
        [alembic_executable.as_posix(), "-c", "alembic.ini", *command_parts],
        cwd=PROJECT_ROOT,
        check=False,
        capture_output=True,
        text=True,
        env=env,
    )
