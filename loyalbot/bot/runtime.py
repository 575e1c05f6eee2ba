"""Telethon bot wiring for the chat dispatcher."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from telethon import Button, TelegramClient, events
from telethon.sessions import StringSession

from loyalbot.config.logging import correlation_id

from .dispatcher import IncomingMessage

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from loyalbot.config.secrets import TelegramConfig

    from .dispatcher import BotDispatcher, BotReply

logger = logging.getLogger(__name__)

MESSAGE_MAX_CHARS = 4096


class TelegramBotError(RuntimeError):
    """Base exception for bot lifecycle failures."""

    @classmethod
    def not_started(cls) -> TelegramBotError:
        """Build deterministic error for use before startup."""
        message = "Telegram bot is not started."
        return cls(message)


class BotClientProtocol(Protocol):
    """Minimal Telethon client surface used by the bot."""

    async def start(self, *, bot_token: str) -> object: ...

    async def get_me(self) -> Any: ...

    def add_event_handler(
        self,
        callback: Callable[[Any], Coroutine[Any, Any, None]],
        event: object,
    ) -> None: ...

    async def disconnect(self) -> None: ...


class BotClientFactoryProtocol(Protocol):
    """Factory for constructing the bot client from Telegram credentials."""

    def __call__(self, config: TelegramConfig) -> BotClientProtocol: ...


def _telethon_client_factory(config: TelegramConfig) -> BotClientProtocol:
    # Bot sessions are re-created from the token on every start.
    return TelegramClient(StringSession(), config.api_id, config.api_hash)


@dataclass(slots=True)
class TelegramBot:
    """Lifecycle dependency that runs the bot for the app lifetime."""

    config_provider: Callable[[], TelegramConfig]
    dispatcher_provider: Callable[[], BotDispatcher]
    client_factory: BotClientFactoryProtocol = field(default=_telethon_client_factory)
    client: BotClientProtocol | None = None
    dispatcher: BotDispatcher | None = None

    async def startup(self) -> None:
        """Log in with the bot token and register update handlers."""
        config = self.config_provider()
        client = self.client_factory(config)
        _ = await client.start(bot_token=config.bot_token)
        me = await client.get_me()
        dispatcher = self.dispatcher_provider()
        dispatcher.bot_username = getattr(me, "username", None)
        client.add_event_handler(self.on_message, events.NewMessage(incoming=True))
        client.add_event_handler(self.on_button, events.CallbackQuery())
        self.client = client
        self.dispatcher = dispatcher
        logger.info("Telegram bot started", extra={"bot_username": dispatcher.bot_username})

    async def shutdown(self) -> None:
        """Disconnect the bot client if it was started."""
        if self.client is not None:
            await self.client.disconnect()
        self.client = None
        self.dispatcher = None

    async def on_message(self, event: Any) -> None:
        """Handle one incoming message update."""
        dispatcher = self._require_dispatcher()
        _ = correlation_id.set(f"chat-{event.chat_id}")
        message = IncomingMessage(
            chat_id=event.chat_id,
            sender_id=event.sender_id,
            text=event.raw_text or "",
        )
        reply = await dispatcher.handle_message(message)
        await _send(event, reply)

    async def on_button(self, event: Any) -> None:
        """Handle one inline button press."""
        dispatcher = self._require_dispatcher()
        _ = correlation_id.set(f"chat-{event.chat_id}")
        await event.answer()
        for reply in await dispatcher.handle_button(event.data):
            await _send(event, reply)

    def _require_dispatcher(self) -> BotDispatcher:
        if self.dispatcher is None:
            raise TelegramBotError.not_started()
        return self.dispatcher


async def _send(event: Any, reply: BotReply) -> None:
    """Respond in the event's chat, splitting over-long text; buttons go last."""
    chunks = split_message(reply.text)
    keyboard = [[Button.inline(label, data) for label, data in row] for row in reply.buttons]
    for index, chunk in enumerate(chunks):
        is_last = index == len(chunks) - 1
        _ = await event.respond(chunk, buttons=keyboard if is_last and keyboard else None)


def split_message(text: str, *, limit: int = MESSAGE_MAX_CHARS) -> list[str]:
    """Split text into chunks under `limit`, preferring line boundaries."""
    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current or not chunks:
        chunks.append(current)
    return [chunk.rstrip("\n") or chunk for chunk in chunks]
