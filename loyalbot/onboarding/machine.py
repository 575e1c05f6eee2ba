"""Per-chat state machine driving SMS verification, login and registration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, TypeVar

from loyalbot.backend.errors import (
    AuthProtocolError,
    BackendError,
    SmsGateError,
    UnrecognizedStepError,
)
from loyalbot.backend.models import NextStep
from loyalbot.storage.accounts_repo import AccountStoreError

from .states import AwaitingDisplayName, AwaitingSmsCode, ConversationState, Idle

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from loyalbot.backend.models import AccountRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OnboardingFailure(StrEnum):
    """Failure kinds reported back to the operator."""

    TRANSPORT = "transport"
    SMS_GATE = "sms_gate"
    UNRECOGNIZED_STEP = "unrecognized_step"
    AUTH_PROTOCOL = "auth_protocol"
    STORE = "store"
    CANCELLED = "cancelled"


_FAILURE_PREFIXES: dict[OnboardingFailure, str] = {
    OnboardingFailure.TRANSPORT: "Backend request failed",
    OnboardingFailure.SMS_GATE: "SMS code was not sent",
    OnboardingFailure.UNRECOGNIZED_STEP: "Internal inconsistency",
    OnboardingFailure.AUTH_PROTOCOL: "Authentication protocol error",
    OnboardingFailure.STORE: "Account store error",
}


@dataclass(frozen=True, slots=True)
class OnboardingReply:
    """Text for the operator plus the failure kind, if the step failed."""

    text: str
    failure: OnboardingFailure | None = None

    @property
    def ok(self) -> bool:
        """Return True when the step did not fail."""
        return self.failure is None


class OnboardingClient(Protocol):
    """Backend operations the onboarding flow depends on."""

    async def request_sms_code(self, phone_number: str) -> None: ...

    async def compute_next_step(self, phone_number: str) -> NextStep: ...

    async def login(
        self,
        *,
        title: str,
        phone_number: str,
        sms_code: str,
    ) -> AccountRecord: ...

    async def register(
        self,
        *,
        phone_number: str,
        sms_code: str,
        display_name: str,
    ) -> None: ...


class AccountSink(Protocol):
    """Where finished accounts are handed over."""

    async def put(self, record: AccountRecord) -> bool: ...


class _SupersededError(Exception):
    """A result arrived for an event that was cancelled or replaced."""


class OnboardingStateMachine:
    """Onboarding flow for a single chat.

    Every event that awaits the backend takes a fresh generation number;
    `cancel()` and any newer event bump it, and a result whose generation is
    no longer current is dropped without touching state or the store.
    """

    _client: OnboardingClient
    _accounts: AccountSink
    _state: ConversationState
    _generation: int
    _in_flight: int

    def __init__(self, *, client: OnboardingClient, accounts: AccountSink) -> None:
        """Start idle with shared backend client and account sink."""
        self._client = client
        self._accounts = accounts
        self._state = Idle()
        self._generation = 0
        self._in_flight = 0

    @property
    def state(self) -> ConversationState:
        """Return the live conversation state."""
        return self._state

    async def add_account(self, title: str, phone_number: str) -> OnboardingReply:
        """Begin onboarding by requesting an SMS code for `phone_number`."""
        if not isinstance(self._state, Idle) or self._in_flight:
            return OnboardingReply(
                "An account is already being added. Finish it or /cancel first.",
            )
        generation = self._advance()
        try:
            await self._settle(generation, self._client.request_sms_code(phone_number))
        except _SupersededError:
            return _discarded_reply()
        except BackendError as exc:
            return self._fail(exc, title=title)
        self._state = AwaitingSmsCode(title=title, phone_number=phone_number)
        return OnboardingReply(
            f"SMS code sent to {phone_number}. Reply with the code, or /cancel.",
        )

    async def handle_text(self, text: str) -> OnboardingReply:
        """Feed a free-text reply into the current step."""
        value = text.strip()
        match self._state:
            case Idle():
                return OnboardingReply(
                    "Unable to handle the message. Type /help to see the usage.",
                )
            case AwaitingSmsCode() as state if value:
                return await self._submit_sms_code(state, value)
            case AwaitingDisplayName() as state if value:
                return await self._submit_display_name(state, value)
            case _:
                return self.handle_non_text()

    def handle_non_text(self) -> OnboardingReply:
        """Re-prompt for the expected input without changing state."""
        match self._state:
            case AwaitingSmsCode():
                return OnboardingReply("Please send the SMS code as a text message.")
            case AwaitingDisplayName():
                return OnboardingReply("Please send the display name as a text message.")
            case Idle():
                return OnboardingReply(
                    "Unable to handle the message. Type /help to see the usage.",
                )

    def cancel(self) -> OnboardingReply:
        """Drop any in-progress onboarding; a no-op when already idle."""
        if isinstance(self._state, Idle) and self._in_flight == 0:
            return OnboardingReply("Nothing to cancel.")
        _ = self._advance()
        self._state = Idle()
        logger.info("Onboarding cancelled")
        return OnboardingReply("Adding the account was cancelled.")

    async def _submit_sms_code(
        self,
        state: AwaitingSmsCode,
        sms_code: str,
    ) -> OnboardingReply:
        generation = self._advance()
        try:
            step = await self._settle(
                generation,
                self._client.compute_next_step(state.phone_number),
            )
            if step is NextStep.NEW_ACCOUNT:
                self._state = AwaitingDisplayName(
                    title=state.title,
                    phone_number=state.phone_number,
                    sms_code=sms_code,
                )
                return OnboardingReply(
                    "This number has no account yet. Send a display name to register it.",
                )
            record = await self._settle(
                generation,
                self._client.login(
                    title=state.title,
                    phone_number=state.phone_number,
                    sms_code=sms_code,
                ),
            )
        except _SupersededError:
            return _discarded_reply()
        except BackendError as exc:
            return self._fail(exc, title=state.title)
        return await self._hand_over(record)

    async def _submit_display_name(
        self,
        state: AwaitingDisplayName,
        display_name: str,
    ) -> OnboardingReply:
        generation = self._advance()
        try:
            await self._settle(
                generation,
                self._client.register(
                    phone_number=state.phone_number,
                    sms_code=state.sms_code,
                    display_name=display_name,
                ),
            )
            record = await self._settle(
                generation,
                self._client.login(
                    title=state.title,
                    phone_number=state.phone_number,
                    sms_code=state.sms_code,
                ),
            )
        except _SupersededError:
            return _discarded_reply()
        except BackendError as exc:
            return self._fail(exc, title=state.title)
        return await self._hand_over(record)

    async def _hand_over(self, record: AccountRecord) -> OnboardingReply:
        self._state = Idle()
        try:
            replaced = await self._accounts.put(record)
        except AccountStoreError as exc:
            logger.warning(
                "Onboarded account could not be stored",
                exc_info=True,
                extra={"failure": OnboardingFailure.STORE.value, "title": record.title},
            )
            return _failure_reply(OnboardingFailure.STORE, exc)
        logger.info(
            "Onboarded account stored",
            extra={"title": record.title, "replaced": replaced},
        )
        verb = "updated" if replaced else "added"
        return OnboardingReply(f"Account {record.title} {verb}: {record.summary()}")

    def _fail(self, exc: BackendError, *, title: str) -> OnboardingReply:
        self._state = Idle()
        failure = _classify(exc)
        logger.warning(
            "Onboarding step failed",
            extra={
                "failure": failure.value,
                "error_type": type(exc).__name__,
                "title": title,
            },
        )
        return _failure_reply(failure, exc)

    def _advance(self) -> int:
        self._generation += 1
        return self._generation

    async def _settle(self, generation: int, awaitable: Awaitable[T]) -> T:
        self._in_flight += 1
        try:
            result = await awaitable
        except Exception:
            if generation != self._generation:
                raise _SupersededError from None
            raise
        finally:
            self._in_flight -= 1
        if generation != self._generation:
            raise _SupersededError
        return result


class ConversationRegistry:
    """One onboarding state machine per chat, created on first use."""

    _client: OnboardingClient
    _accounts: AccountSink
    _machines: dict[int, OnboardingStateMachine]

    def __init__(self, *, client: OnboardingClient, accounts: AccountSink) -> None:
        """Share one backend client and account sink across all chats."""
        self._client = client
        self._accounts = accounts
        self._machines = {}

    def machine_for(self, conversation_id: int) -> OnboardingStateMachine:
        """Return the chat's state machine, creating it when missing."""
        machine = self._machines.get(conversation_id)
        if machine is None:
            machine = OnboardingStateMachine(client=self._client, accounts=self._accounts)
            self._machines[conversation_id] = machine
        return machine


def _classify(exc: BackendError) -> OnboardingFailure:
    if isinstance(exc, SmsGateError):
        return OnboardingFailure.SMS_GATE
    if isinstance(exc, UnrecognizedStepError):
        return OnboardingFailure.UNRECOGNIZED_STEP
    if isinstance(exc, AuthProtocolError):
        return OnboardingFailure.AUTH_PROTOCOL
    return OnboardingFailure.TRANSPORT


def _failure_reply(failure: OnboardingFailure, exc: Exception) -> OnboardingReply:
    return OnboardingReply(f"{_FAILURE_PREFIXES[failure]}: {exc}", failure=failure)


def _discarded_reply() -> OnboardingReply:
    return OnboardingReply(
        "A backend reply arrived after the request was cancelled or replaced by a "
        "newer message, and was ignored.",
        failure=OnboardingFailure.CANCELLED,
    )
