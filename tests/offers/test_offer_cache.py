"""Tests for the daily per-account offer cache."""

from __future__ import annotations

from datetime import date

import pytest

from loyalbot.backend import AccountRecord, BackendTransportError, Offer, SessionCredentials
from loyalbot.offers import OfferCache
from tests.support import build_offer, build_record


class FakeAccounts:
    def __init__(self, records: list[AccountRecord]) -> None:
        self.records = records

    async def list_all(self) -> list[AccountRecord]:
        return list(self.records)


class FakeOffersClient:
    def __init__(self, failing_csrf: set[str] | None = None) -> None:
        self.failing_csrf = failing_csrf or set()
        self.calls = 0

    async def get_offers(self, credentials: SessionCredentials) -> list[Offer]:
        self.calls += 1
        if credentials.csrf_token in self.failing_csrf:
            raise BackendTransportError.for_operation("get_offers", details="boom")
        return [build_offer(f"Offer for {credentials.csrf_token}")]


class Clock:
    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.mark.asyncio
async def test_sync_collects_offers_per_account() -> None:
    """Ensure every stored account gets its own offers snapshot."""
    cache = OfferCache(today=Clock(date(2026, 3, 1)))
    accounts = FakeAccounts(
        [build_record("a", csrf_token="ta"), build_record("b", csrf_token="tb")],
    )

    synced = await cache.sync(accounts=accounts, client=FakeOffersClient())

    if synced != 2:  # noqa: PLR2004
        raise AssertionError
    if [title for title, _ in cache.snapshot()] != ["a", "b"]:
        raise AssertionError
    offers = cache.offers_for("b")
    if offers is None or offers[0].name != "Offer for tb":
        raise AssertionError
    if cache.offers_for("missing") is not None:
        raise AssertionError


@pytest.mark.asyncio
async def test_sync_runs_at_most_once_per_day_unless_forced() -> None:
    """Ensure repeat syncs on the same day skip the backend."""
    clock = Clock(date(2026, 3, 1))
    cache = OfferCache(today=clock)
    accounts = FakeAccounts([build_record("a")])
    client = FakeOffersClient()

    _ = await cache.sync(accounts=accounts, client=client)
    repeat = await cache.sync(accounts=accounts, client=client)
    forced = await cache.sync(accounts=accounts, client=client, force=True)
    clock.today = date(2026, 3, 2)
    next_day = await cache.sync(accounts=accounts, client=client)

    if repeat is not None:
        raise AssertionError
    if forced != 1 or next_day != 1:
        raise AssertionError
    if client.calls != 3:  # noqa: PLR2004
        raise AssertionError


@pytest.mark.asyncio
async def test_sync_skips_accounts_whose_fetch_fails() -> None:
    """Ensure one broken account does not abort the whole sync."""
    cache = OfferCache(today=Clock(date(2026, 3, 1)))
    accounts = FakeAccounts(
        [build_record("bad", csrf_token="tb"), build_record("good", csrf_token="tg")],
    )

    synced = await cache.sync(
        accounts=accounts,
        client=FakeOffersClient(failing_csrf={"tb"}),
    )

    if synced != 1:
        raise AssertionError
    if [title for title, _ in cache.snapshot()] != ["good"]:
        raise AssertionError


@pytest.mark.asyncio
async def test_invalidate_forces_next_sync() -> None:
    """Ensure invalidation re-enables a same-day refresh."""
    cache = OfferCache(today=Clock(date(2026, 3, 1)))
    accounts = FakeAccounts([build_record("a")])
    client = FakeOffersClient()
    _ = await cache.sync(accounts=accounts, client=client)

    cache.invalidate()
    synced = await cache.sync(accounts=accounts, client=client)

    if synced != 1:
        raise AssertionError


@pytest.mark.asyncio
async def test_failed_account_is_retried_on_same_day_sync() -> None:
    """Ensure a failed fetch leaves the day open so the next sync retries it."""
    cache = OfferCache(today=Clock(date(2026, 3, 1)))
    accounts = FakeAccounts(
        [build_record("a", csrf_token="ta"), build_record("b", csrf_token="tb")],
    )
    client = FakeOffersClient(failing_csrf={"ta"})

    first = await cache.sync(accounts=accounts, client=client)
    failed_first = cache.failed_titles()
    client.failing_csrf.clear()
    second = await cache.sync(accounts=accounts, client=client)
    third = await cache.sync(accounts=accounts, client=client)

    if first != 1 or failed_first != ["a"]:
        raise AssertionError
    if second != 2:  # noqa: PLR2004
        raise AssertionError
    offers = cache.offers_for("a")
    if offers is None or offers[0].name != "Offer for ta":
        raise AssertionError
    if cache.failed_titles() or third is not None:
        raise AssertionError
