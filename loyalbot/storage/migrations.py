"""Alembic migration runner used by application startup lifecycle hooks."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loyalbot.config.settings import AppSettings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ALEMBIC_CONFIG_PATH = PROJECT_ROOT / "alembic.ini"
ALEMBIC_EXECUTABLE = Path(sys.executable).with_name("alembic")


class MigrationStartupError(RuntimeError):
    """Raised when startup migrations fail before the bot starts."""

    @classmethod
    def for_db_path_prepare_failure(
        cls,
        db_path: Path,
        *,
        details: str,
    ) -> MigrationStartupError:
        """Build error for DB directory creation failures."""
        message = (
            "Failed to prepare database path for startup migrations "
            f"(db={db_path.as_posix()}): {details}"
        )
        return cls(message)

    @classmethod
    def for_upgrade_failure(
        cls,
        db_path: Path,
        *,
        details: str,
    ) -> MigrationStartupError:
        """Build error for a failed `alembic upgrade head` run."""
        message = (
            "Failed to apply startup migrations with "
            f"`alembic upgrade head` (db={db_path.as_posix()}): {details}"
        )
        return cls(message)

    @classmethod
    def for_missing_executable(cls, executable: Path) -> MigrationStartupError:
        """Build error for missing Alembic CLI executable in runtime env."""
        return cls(f"Missing Alembic executable required at startup: {executable}.")


def run_startup_migrations(settings: AppSettings) -> None:
    """Upgrade the account database schema to Alembic head."""
    db_path = settings.db_path.expanduser()
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise MigrationStartupError.for_db_path_prepare_failure(
            db_path,
            details=str(exc),
        ) from exc

    if not ALEMBIC_EXECUTABLE.exists():
        raise MigrationStartupError.for_missing_executable(ALEMBIC_EXECUTABLE)

    logger.info("Applying startup migrations (db=%s)", db_path)
    env = os.environ.copy()
    env["LOYALBOT_DB_PATH"] = db_path.as_posix()
    try:
        result = subprocess.run(  # noqa: S603
            [
                ALEMBIC_EXECUTABLE.as_posix(),
                "-c",
                ALEMBIC_CONFIG_PATH.as_posix(),
                "upgrade",
                "head",
            ],
            cwd=PROJECT_ROOT,
            check=False,
            capture_output=True,
            text=True,
            env=env,
        )
    except OSError as exc:
        raise MigrationStartupError.for_upgrade_failure(
            db_path,
            details=str(exc),
        ) from exc
    if result.returncode != 0:
        output = result.stderr.strip() or result.stdout.strip() or "unknown error"
        raise MigrationStartupError.for_upgrade_failure(db_path, details=output)

    logger.info("Startup migrations complete (db=%s)", db_path)


class MigrationRunnerDependency:
    """Lifecycle dependency that gates startup on migration completion."""

    _settings: AppSettings

    def __init__(self, settings: AppSettings) -> None:
        """Bind the settings whose database gets migrated."""
        self._settings = settings

    async def startup(self) -> None:
        """Run migrations before the bot accepts updates."""
        await asyncio.to_thread(run_startup_migrations, self._settings)

    async def shutdown(self) -> None:
        """No-op shutdown hook for lifecycle protocol compatibility."""
        return
