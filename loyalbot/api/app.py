"""FastAPI application factory and lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, cast, runtime_checkable

from fastapi import Depends, FastAPI

from loyalbot.api.bearer_auth import require_bearer_auth
from loyalbot.api.routes.accounts import router as accounts_router
from loyalbot.api.routes.health import router as health_router
from loyalbot.backend import LoyaltyApiClient, create_http_client
from loyalbot.bot import BotDispatcher, TelegramBot
from loyalbot.config import AppSettings, Secrets, load_secrets, load_settings
from loyalbot.config.logging import init_logging
from loyalbot.offers import OfferCache
from loyalbot.onboarding import ConversationRegistry
from loyalbot.storage import (
    AccountsRepository,
    AccountStore,
    MigrationRunnerDependency,
    StorageRuntime,
    WriterQueue,
    create_storage_runtime,
    dispose_storage_runtime,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from loyalbot.config import TelegramConfig

logger = logging.getLogger(__name__)

_RUNTIME_STATE_NAMES = (
    "secrets",
    "storage_runtime",
    "writer_queue",
    "account_store",
    "offer_cache",
    "api_client",
)


class StartupDependencyError(RuntimeError):
    """Raised when required startup dependencies are missing or malformed."""

    @classmethod
    def missing_container(cls) -> StartupDependencyError:
        """Build error for absent dependency container on app state."""
        message = "Missing startup dependency container: app.state.dependencies."
        return cls(message)

    @classmethod
    def invalid_dependency(cls, name: str) -> StartupDependencyError:
        """Build error for a dependency without startup/shutdown hooks."""
        message = f"Invalid startup dependency '{name}': expected startup/shutdown hooks."
        return cls(message)

    @classmethod
    def missing_state(cls, name: str) -> StartupDependencyError:
        """Build error for runtime objects read before lifespan created them."""
        message = f"Missing app runtime object: app.state.{name}."
        return cls(message)


@runtime_checkable
class LifecycleDependency(Protocol):
    """Protocol for startup/shutdown-managed app dependencies."""

    async def startup(self) -> None:
        """Run dependency startup actions."""

    async def shutdown(self) -> None:
        """Run dependency shutdown actions."""


@dataclass(slots=True)
class StartupDependencies:
    """Lifecycle hooks started in field order and stopped in reverse."""

    db: LifecycleDependency
    backend: LifecycleDependency
    bot: LifecycleDependency


@dataclass(slots=True)
class BackendClientDependency:
    """Own the shared backend client for the app lifetime."""

    app: FastAPI
    timeout_seconds: float

    async def startup(self) -> None:
        """Create the HTTP transport and publish the client on app state."""
        secrets = cast("Secrets", _require_state(self.app, "secrets"))
        self.app.state.api_client = LoyaltyApiClient(
            config=secrets.api_config,
            http_client=create_http_client(timeout_seconds=self.timeout_seconds),
        )

    async def shutdown(self) -> None:
        """Close the HTTP transport."""
        client = getattr(cast("object", self.app.state), "api_client", None)
        if isinstance(client, LoyaltyApiClient):
            await client.aclose()


def _default_dependencies(app: FastAPI, settings: AppSettings) -> StartupDependencies:
    return StartupDependencies(
        db=MigrationRunnerDependency(settings),
        backend=BackendClientDependency(
            app=app,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        bot=_build_bot_dependency(app),
    )


def _build_bot_dependency(app: FastAPI) -> TelegramBot:
    """Create the bot bound lazily to runtime objects on app state."""

    def _config_provider() -> TelegramConfig:
        secrets = cast("Secrets", _require_state(app, "secrets"))
        return secrets.telegram_config

    def _dispatcher_provider() -> BotDispatcher:
        secrets = cast("Secrets", _require_state(app, "secrets"))
        client = cast("LoyaltyApiClient", _require_state(app, "api_client"))
        store = cast("AccountStore", _require_state(app, "account_store"))
        return BotDispatcher(
            registry=ConversationRegistry(client=client, accounts=store),
            accounts=store,
            offers=cast("OfferCache", _require_state(app, "offer_cache")),
            offers_client=client,
            telegram=secrets.telegram_config,
            ean_frontend=secrets.ean_frontend,
        )

    return TelegramBot(
        config_provider=_config_provider,
        dispatcher_provider=_dispatcher_provider,
    )


def _resolve_startup_dependencies(app: FastAPI) -> StartupDependencies:
    raw_dependencies = getattr(cast("object", app.state), "dependencies", None)
    if raw_dependencies is None:
        raise StartupDependencyError.missing_container()
    for name in ("db", "backend", "bot"):
        dependency = getattr(cast("object", raw_dependencies), name, None)
        if not isinstance(dependency, LifecycleDependency):
            raise StartupDependencyError.invalid_dependency(name)
    return cast("StartupDependencies", raw_dependencies)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown events."""
    dependencies = _resolve_startup_dependencies(app)
    settings = load_settings()
    storage_runtime: StorageRuntime | None = None
    writer_queue: WriterQueue | None = None
    startup_order: tuple[LifecycleDependency, ...] = (
        dependencies.db,
        dependencies.backend,
        dependencies.bot,
    )
    started_dependencies: list[LifecycleDependency] = []

    logger.info(
        "Starting loyalbot (bind=%s, db=%s)",
        settings.bind,
        settings.db_path,
    )
    try:
        app.state.secrets = load_secrets(settings.secrets_file)
        storage_runtime = create_storage_runtime(settings)
        writer_queue = WriterQueue()
        app.state.storage_runtime = storage_runtime
        app.state.writer_queue = writer_queue
        app.state.account_store = AccountStore(
            repository=AccountsRepository(
                read_session_factory=storage_runtime.read_session_factory,
                write_session_factory=storage_runtime.write_session_factory,
            ),
            writer_queue=writer_queue,
        )
        app.state.offer_cache = OfferCache()
        for dependency in startup_order:
            await dependency.startup()
            started_dependencies.append(dependency)
        yield
    finally:
        for dependency in reversed(started_dependencies):
            await dependency.shutdown()
        if writer_queue is not None:
            await writer_queue.close()
        if storage_runtime is not None:
            await dispose_storage_runtime(storage_runtime)
        _clear_runtime_state(app)
        logger.info("Shutting down loyalbot")


def create_app() -> FastAPI:
    """Create and configure a new FastAPI application instance."""
    settings = load_settings()
    init_logging(settings.log_level)

    app = FastAPI(
        title="loyalbot",
        description="Loyalty account provisioning bot",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.dependencies = _default_dependencies(app, settings)
    app.include_router(health_router)
    app.include_router(
        accounts_router,
        dependencies=[Depends(require_bearer_auth)],
    )
    return app


def _require_state(app: FastAPI, name: str) -> object:
    value = cast("object | None", getattr(cast("object", app.state), name, None))
    if value is None:
        raise StartupDependencyError.missing_state(name)
    return value


def _clear_runtime_state(app: FastAPI) -> None:
    """Remove runtime objects from app state after lifespan shutdown."""
    state = cast("object", app.state)
    for name in _RUNTIME_STATE_NAMES:
        if hasattr(state, name):
            delattr(state, name)
