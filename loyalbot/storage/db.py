"""SQLite engines for the account store.

Reads and writes get separate engines so that listing accounts never queues
behind the single writer; WAL mode lets both work on the same file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from loyalbot.config.settings import AppSettings

CONNECTION_PRAGMAS: tuple[str, ...] = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=5000",
)

SessionFactory = async_sessionmaker[AsyncSession]


@dataclass(slots=True)
class StorageRuntime:
    """Engines and session factories shared by the repository."""

    read_engine: AsyncEngine
    write_engine: AsyncEngine
    read_session_factory: SessionFactory
    write_session_factory: SessionFactory


def create_storage_runtime(settings: AppSettings) -> StorageRuntime:
    """Open read and write engines on the configured database file."""
    url = f"sqlite+aiosqlite:///{settings.db_path.expanduser().as_posix()}"
    read_engine = _sqlite_engine(url)
    write_engine = _sqlite_engine(url)
    return StorageRuntime(
        read_engine=read_engine,
        write_engine=write_engine,
        read_session_factory=async_sessionmaker(read_engine, expire_on_commit=False),
        write_session_factory=async_sessionmaker(write_engine, expire_on_commit=False),
    )


async def dispose_storage_runtime(runtime: StorageRuntime) -> None:
    """Close both engines."""
    await runtime.read_engine.dispose()
    await runtime.write_engine.dispose()


def _sqlite_engine(url: str) -> AsyncEngine:
    engine = create_async_engine(url)

    @event.listens_for(engine.sync_engine, "connect")
    def _apply_pragmas(dbapi_connection: Any, _record: Any) -> None:  # noqa: ANN401
        cursor = dbapi_connection.cursor()
        try:
            for pragma in CONNECTION_PRAGMAS:
                cursor.execute(pragma)
        finally:
            cursor.close()

    return engine
