"""Storage module for loyalbot."""

from .accounts_repo import (
    AccountAlreadyExistsError,
    AccountDecodeError,
    AccountNotFoundError,
    AccountsRepository,
    AccountStore,
    AccountStoreError,
)
from .db import (
    SessionFactory,
    StorageRuntime,
    create_storage_runtime,
    dispose_storage_runtime,
)
from .migrations import (
    MigrationRunnerDependency,
    MigrationStartupError,
    run_startup_migrations,
)
from .writer_queue import (
    WriterQueue,
    WriterQueueClosedError,
    WriterQueueProtocol,
)

__all__ = [
    "AccountAlreadyExistsError",
    "AccountDecodeError",
    "AccountNotFoundError",
    "AccountStore",
    "AccountStoreError",
    "AccountsRepository",
    "MigrationRunnerDependency",
    "MigrationStartupError",
    "SessionFactory",
    "StorageRuntime",
    "WriterQueue",
    "WriterQueueClosedError",
    "WriterQueueProtocol",
    "create_storage_runtime",
    "dispose_storage_runtime",
    "run_startup_migrations",
]
