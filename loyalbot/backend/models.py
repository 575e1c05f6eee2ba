"""Domain records produced by the loyalty backend client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True, slots=True)
class SessionCredentials:
    """Session cookies plus CSRF token attached to every backend request."""

    session_token_a: str
    session_token_b: str
    csrf_token: str

    @classmethod
    def anonymous(cls, csrf_token: str) -> SessionCredentials:
        """Build credentials for unauthenticated calls."""
        return cls(session_token_a="", session_token_b="", csrf_token=csrf_token)

    @property
    def is_authenticated(self) -> bool:
        """Return True when both session cookies and the CSRF token are set."""
        return bool(self.session_token_a and self.session_token_b and self.csrf_token)


@dataclass(frozen=True, slots=True)
class AccountRecord:
    """A provisioned loyalty account keyed by its operator-chosen title."""

    title: str
    phone_number: str
    card_number: str
    external_customer_id: str
    auth_token: str
    credentials: SessionCredentials

    def summary(self) -> str:
        """Return a one-line description safe to show in chat."""
        return f"phone: {self.phone_number}; card: {self.card_number}"


class NextStep(StrEnum):
    """Onboarding branch chosen by the backend after SMS verification."""

    NEW_ACCOUNT = "new_account"
    ACCOUNT_EXISTS = "account_exists"


@dataclass(frozen=True, slots=True)
class Offer:
    """A personal promotional offer attached to one account."""

    offer_id: str
    name: str
    details: str
    limit: str
    image: str | None
    human_time: str
    regular_price: str
    regular_price_unit: str
    offer_price: str
    offer_price_unit: str
    discount_percent: int

    def short_display(self) -> str:
        """Return the compact one-line listing form."""
        return f"{self.name} - {self.regular_price_unit} => {self.offer_price_unit}"

    def __str__(self) -> str:
        return (
            f"{self.name}\n{self.details}\n"
            f"{self.regular_price} -> {self.offer_price}\n"
            f"{self.regular_price_unit} -> {self.offer_price_unit}\n"
            f"{self.limit}"
        )
