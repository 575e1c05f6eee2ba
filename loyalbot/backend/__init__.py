"""Loyalty backend protocol client."""

from .client import (
    SESSION_COOKIE_A,
    SESSION_COOKIE_B,
    LoyaltyApiClient,
    create_http_client,
)
from .csrf import extract_csrf_token
from .errors import (
    AuthProtocolError,
    BackendError,
    BackendTransportError,
    CsrfNotFoundError,
    MissingCookieError,
    SmsBlockedError,
    SmsGateError,
    SmsSendFailedError,
    UnrecognizedStepError,
)
from .models import AccountRecord, NextStep, Offer, SessionCredentials

__all__ = [
    "SESSION_COOKIE_A",
    "SESSION_COOKIE_B",
    "AccountRecord",
    "AuthProtocolError",
    "BackendError",
    "BackendTransportError",
    "CsrfNotFoundError",
    "LoyaltyApiClient",
    "MissingCookieError",
    "NextStep",
    "Offer",
    "SessionCredentials",
    "SmsBlockedError",
    "SmsGateError",
    "SmsSendFailedError",
    "UnrecognizedStepError",
    "create_http_client",
    "extract_csrf_token",
]
