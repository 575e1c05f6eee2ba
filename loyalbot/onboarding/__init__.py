"""Conversational account onboarding."""

from .machine import (
    AccountSink,
    ConversationRegistry,
    OnboardingClient,
    OnboardingFailure,
    OnboardingReply,
    OnboardingStateMachine,
)
from .states import AwaitingDisplayName, AwaitingSmsCode, ConversationState, Idle

__all__ = [
    "AccountSink",
    "AwaitingDisplayName",
    "AwaitingSmsCode",
    "ConversationRegistry",
    "ConversationState",
    "Idle",
    "OnboardingClient",
    "OnboardingFailure",
    "OnboardingReply",
    "OnboardingStateMachine",
]
