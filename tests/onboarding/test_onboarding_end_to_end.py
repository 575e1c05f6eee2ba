"""Tests driving the onboarding flow against the real client over a mocked transport."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from loyalbot.backend import LoyaltyApiClient, create_http_client
from loyalbot.onboarding import Idle, OnboardingFailure, OnboardingStateMachine

if TYPE_CHECKING:
    from loyalbot.backend import AccountRecord
    from loyalbot.config import ApiConfig

PHONE_NUMBER = "+15551234"


def _envelope(data: dict[str, object]) -> dict[str, object]:
    return {
        "versionInfo": {"hasModuleVersionChanged": False, "hasApiVersionChanged": False},
        "data": data,
    }


def _backend(request: httpx.Request) -> httpx.Response:
    """Answer each onboarding action the way the loyalty backend does."""
    path = request.url.path
    if path.endswith("/ActionSendSMSCode"):
        return httpx.Response(200, json=_envelope({"isSMSSent": True}))
    if path.endswith("/ActionGetNextStep"):
        return httpx.Response(200, json=_envelope({"nextStep": "Login"}))
    if path.endswith("/ActionDoLogin"):
        return httpx.Response(
            200,
            headers=[
                ("set-cookie", "nr1Users=abc; Path=/; HttpOnly"),
                ("set-cookie", "nr2Users=%3Bcrf%3Dtok42%3B; Path=/"),
            ],
            json=_envelope(
                {
                    "cardNumber": "9900112233",
                    "externalCustomerId": "ext-1",
                    "authToken": "auth-1",
                },
            ),
        )
    return httpx.Response(404)


def _blocked(request: httpx.Request) -> httpx.Response:
    _ = request
    return httpx.Response(
        200,
        json=_envelope({"isSMSSent": False, "isBlocked": True, "blockedInMinutes": 5}),
    )


class RecordingSink:
    def __init__(self) -> None:
        self.records: dict[str, AccountRecord] = {}

    async def put(self, record: AccountRecord) -> bool:
        replaced = record.title in self.records
        self.records[record.title] = record
        return replaced


def _client(api_config: ApiConfig, transport: httpx.MockTransport) -> LoyaltyApiClient:
    return LoyaltyApiClient(
        config=api_config,
        http_client=create_http_client(timeout_seconds=5.0, transport=transport),
    )


@pytest.mark.asyncio
async def test_login_flow_stores_record_with_session_csrf(api_config: ApiConfig) -> None:
    """Ensure add, code and login over HTTP hand the sink an authenticated record."""
    client = _client(api_config, httpx.MockTransport(_backend))
    sink = RecordingSink()
    machine = OnboardingStateMachine(client=client, accounts=sink)
    try:
        added = await machine.add_account("store", PHONE_NUMBER)
        finished = await machine.handle_text("0000")
    finally:
        await client.aclose()

    if not added.ok or not finished.ok:
        raise AssertionError
    if not isinstance(machine.state, Idle):
        raise AssertionError
    record = sink.records["store"]
    if record.credentials.session_token_a != "abc":
        raise AssertionError
    if record.credentials.csrf_token != "tok42":
        raise AssertionError


@pytest.mark.asyncio
async def test_blocked_sms_request_reports_gate_and_stays_idle(
    api_config: ApiConfig,
) -> None:
    """Ensure a backend block surfaces as an SMS gate failure with no state change."""
    client = _client(api_config, httpx.MockTransport(_blocked))
    sink = RecordingSink()
    machine = OnboardingStateMachine(client=client, accounts=sink)
    try:
        reply = await machine.add_account("store", PHONE_NUMBER)
    finally:
        await client.aclose()

    if reply.failure is not OnboardingFailure.SMS_GATE:
        raise AssertionError
    if "5 minutes" not in reply.text:
        raise AssertionError
    if not isinstance(machine.state, Idle) or sink.records:
        raise AssertionError
