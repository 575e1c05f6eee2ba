"""Route chat messages and button presses to commands and onboarding."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from loyalbot.onboarding import Idle
from loyalbot.storage.accounts_repo import AccountStoreError

from .commands import OPERATOR_COMMANDS, PUBLIC_COMMANDS, help_text, parse_command

if TYPE_CHECKING:
    from loyalbot.backend.models import AccountRecord
    from loyalbot.config.secrets import TelegramConfig
    from loyalbot.offers import OfferCache, OffersClient
    from loyalbot.onboarding import ConversationRegistry

    from .commands import ParsedCommand

logger = logging.getLogger(__name__)

UNHANDLED_MESSAGE = "Unable to handle the message. Type /help to see the usage."
BUTTON_DATA_MAX_BYTES = 64


class AccountAdmin(Protocol):
    """Account store operations exposed through chat commands."""

    async def get(self, title: str) -> AccountRecord: ...

    async def delete(self, title: str) -> AccountRecord: ...

    async def rename(self, old: str, new: str) -> None: ...

    async def list_all(self) -> list[AccountRecord]: ...


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    """Transport-neutral view of one chat message."""

    chat_id: int
    sender_id: int | None
    text: str


@dataclass(frozen=True, slots=True)
class BotReply:
    """Outbound text with optional rows of (label, callback data) buttons."""

    text: str
    buttons: tuple[tuple[tuple[str, bytes], ...], ...] = ()


@dataclass(slots=True)
class BotDispatcher:
    """Handle one update at a time for any number of chats."""

    registry: ConversationRegistry
    accounts: AccountAdmin
    offers: OfferCache
    offers_client: OffersClient
    telegram: TelegramConfig
    ean_frontend: str
    bot_username: str | None = None

    async def handle_message(self, message: IncomingMessage) -> BotReply:
        """Return the reply for one incoming chat message."""
        command = parse_command(message.text, bot_username=self.bot_username)
        is_operator = self.telegram.is_operator(message.sender_id)
        if command is None:
            if not is_operator:
                return BotReply(UNHANDLED_MESSAGE)
            return await self._handle_free_text(message)
        if command.name in PUBLIC_COMMANDS:
            return await self._handle_public(command, is_operator=is_operator)
        if command.name in OPERATOR_COMMANDS and is_operator:
            return await self._handle_operator(command, chat_id=message.chat_id)
        return BotReply(UNHANDLED_MESSAGE)

    async def handle_button(self, data: bytes) -> list[BotReply]:
        """Return the offers and card link for the account on a pressed button."""
        title = data.decode("utf-8", errors="replace")
        offers = self.offers.offers_for(title)
        if offers is None:
            return [BotReply(f"No cached offers for {title}. Run /sync first.")]
        try:
            record = await self.accounts.get(title)
        except AccountStoreError as exc:
            return [BotReply(f"Error loading account: {exc}")]
        replies = [BotReply(str(offer)) for offer in offers]
        replies.append(BotReply(f"View card: {self.ean_frontend}{record.card_number}"))
        return replies

    async def _handle_free_text(self, message: IncomingMessage) -> BotReply:
        machine = self.registry.machine_for(message.chat_id)
        if not message.text.strip():
            return BotReply(machine.handle_non_text().text)
        was_idle = isinstance(machine.state, Idle)
        reply = await machine.handle_text(message.text)
        if reply.ok and not was_idle and isinstance(machine.state, Idle):
            # A new or re-logged account has no cached offers yet.
            self.offers.invalidate()
        return BotReply(reply.text)

    async def _handle_public(
        self,
        command: ParsedCommand,
        *,
        is_operator: bool,
    ) -> BotReply:
        match command.name:
            case "help":
                return BotReply(help_text(include_operator=is_operator))
            case "offers":
                return self._list_offers()
            case _:
                return await self._sync_offers()

    async def _handle_operator(self, command: ParsedCommand, *, chat_id: int) -> BotReply:
        machine = self.registry.machine_for(chat_id)
        match command.name, command.args:
            case "add", (title, phone_number):
                reply = await machine.add_account(title, phone_number)
                return BotReply(reply.text)
            case "add", _:
                return BotReply(f"Usage: /add title phone ({OPERATOR_COMMANDS['add']})")
            case "cancel", _:
                return BotReply(machine.cancel().text)
            case "list", _:
                return await self._list_accounts()
            case "rename", (old, new):
                return await self._rename_account(old, new)
            case "rename", _:
                return BotReply("Usage: /rename old new")
            case "remove", args if args:
                return await self._remove_account(" ".join(args))
            case _:
                return BotReply("Usage: /remove title")

    def _list_offers(self) -> BotReply:
        snapshot = self.offers.snapshot()
        if not snapshot:
            return BotReply("No offers cached. Run /sync first.")
        sections = [
            f"{title}:\n" + "\n".join(offer.short_display() for offer in offers)
            for title, offers in snapshot
        ]
        return BotReply(
            "Current offers:\n\n" + "\n\n".join(sections),
            buttons=_account_keyboard([title for title, _ in snapshot]),
        )

    async def _sync_offers(self) -> BotReply:
        try:
            synced = await self.offers.sync(
                accounts=self.accounts,
                client=self.offers_client,
            )
        except AccountStoreError as exc:
            return BotReply(f"Synching failed: {exc}")
        if synced is None:
            return BotReply("Offers were already synced today.")
        failed = self.offers.failed_titles()
        if failed:
            return BotReply(
                f"Synching finished ({synced} accounts). "
                f"Failed for: {', '.join(failed)}. Run /sync again to retry.",
            )
        return BotReply(f"Synching finished ({synced} accounts).")

    async def _list_accounts(self) -> BotReply:
        try:
            records = await self.accounts.list_all()
        except AccountStoreError as exc:
            return BotReply(f"Error listing accounts: {exc}")
        if not records:
            return BotReply("No accounts added yet.")
        return BotReply(
            "\n\n".join(f"{record.title} - {record.summary()}" for record in records),
        )

    async def _rename_account(self, old: str, new: str) -> BotReply:
        try:
            await self.accounts.rename(old, new)
        except AccountStoreError as exc:
            return BotReply(f"Error renaming account: {exc}")
        self.offers.invalidate()
        logger.info("Account renamed", extra={"title": old, "new_title": new})
        return BotReply(f"Renamed account {old} to {new}")

    async def _remove_account(self, title: str) -> BotReply:
        try:
            record = await self.accounts.delete(title)
        except AccountStoreError as exc:
            return BotReply(f"Error removing account: {exc}")
        self.offers.invalidate()
        logger.info("Account removed", extra={"title": title})
        return BotReply(f"Removed account {title} ({record.summary()})")


def _account_keyboard(titles: list[str]) -> tuple[tuple[tuple[str, bytes], ...], ...]:
    """Two buttons per row; titles too long for callback data are skipped."""
    buttons = [
        (title, encoded)
        for title in titles
        if len(encoded := title.encode("utf-8")) <= BUTTON_DATA_MAX_BYTES
    ]
    return tuple(tuple(buttons[index : index + 2]) for index in range(0, len(buttons), 2))
