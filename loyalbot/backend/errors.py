"""Exception hierarchy for loyalty backend protocol failures."""

from __future__ import annotations


class BackendError(RuntimeError):
    """Base exception for loyalty backend operations."""


class BackendTransportError(BackendError):
    """Raised for network, HTTP status, and response decoding failures."""

    @classmethod
    def for_operation(cls, operation: str, *, details: str) -> BackendTransportError:
        """Build error naming the operation that failed in transport."""
        return cls(f"Backend call {operation} failed: {details}")


class SmsGateError(BackendError):
    """Base exception for SMS code requests rejected by the backend."""


class SmsBlockedError(SmsGateError):
    """Raised when the backend blocks SMS delivery for the phone number."""

    minutes: int | None

    def __init__(self, minutes: int | None) -> None:
        """Store block duration; None means the block has no stated end."""
        self.minutes = minutes
        if minutes is None:
            message = "SMS sending is blocked indefinitely."
        else:
            message = f"SMS sending is blocked for {minutes} minutes."
        super().__init__(message)


class SmsSendFailedError(SmsGateError):
    """Raised when the backend reports the SMS code was not sent."""

    reason: str

    def __init__(self, reason: str) -> None:
        """Store the backend-provided reason text."""
        self.reason = reason
        super().__init__(f"SMS code was not sent: {reason or 'no reason given'}.")


class UnrecognizedStepError(BackendError):
    """Raised when the next-step discriminator has an unknown value."""

    value: str

    def __init__(self, value: str) -> None:
        """Store the unexpected discriminator value."""
        self.value = value
        super().__init__(f"Backend returned unrecognized onboarding step {value!r}.")


class AuthProtocolError(BackendError):
    """Base exception for login responses missing session artifacts."""


class MissingCookieError(AuthProtocolError):
    """Raised when a required session cookie is absent from a login response."""

    name: str

    def __init__(self, name: str) -> None:
        """Store the missing cookie name."""
        self.name = name
        super().__init__(f"Login response did not set the {name} cookie.")


class CsrfNotFoundError(AuthProtocolError):
    """Raised when the session cookie carries no CSRF token."""

    def __init__(self) -> None:
        """Build deterministic missing-token message."""
        super().__init__("Login session cookie does not contain a CSRF token.")
