"""Conversation states for the account onboarding flow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class Idle:
    """No onboarding in progress."""


@dataclass(frozen=True, slots=True)
class AwaitingSmsCode:
    """An SMS code was sent; waiting for the operator to type it."""

    title: str
    phone_number: str


@dataclass(frozen=True, slots=True)
class AwaitingDisplayName:
    """The number is new to the backend; waiting for a display name."""

    title: str
    phone_number: str
    sms_code: str


ConversationState: TypeAlias = Idle | AwaitingSmsCode | AwaitingDisplayName
