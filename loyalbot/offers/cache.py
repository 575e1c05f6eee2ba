"""Daily in-memory cache of per-account offers."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Protocol

from loyalbot.backend.errors import BackendError

if TYPE_CHECKING:
    from collections.abc import Callable

    from loyalbot.backend.models import AccountRecord, Offer, SessionCredentials

logger = logging.getLogger(__name__)


class OffersClient(Protocol):
    """Backend surface needed to fetch offers."""

    async def get_offers(self, credentials: SessionCredentials) -> list[Offer]: ...


class AccountLister(Protocol):
    """Account store surface needed to enumerate accounts."""

    async def list_all(self) -> list[AccountRecord]: ...


def _utc_today() -> date:
    return datetime.now(tz=UTC).date()


class OfferCache:
    """Offers per account title, refreshed at most once per UTC day."""

    _offers: list[tuple[str, list[Offer]]]
    _failed: list[str]
    _collected_on: date | None
    _lock: asyncio.Lock
    _today: Callable[[], date]

    def __init__(self, *, today: Callable[[], date] = _utc_today) -> None:
        """Create an empty cache; `today` is injectable for tests."""
        self._offers = []
        self._failed = []
        self._collected_on = None
        self._lock = asyncio.Lock()
        self._today = today

    async def sync(
        self,
        *,
        accounts: AccountLister,
        client: OffersClient,
        force: bool = False,
    ) -> int | None:
        """Refetch offers for every stored account and return how many synced.

        Returns None without calling the backend when already synced today. An
        account whose fetch fails is logged and left out of the new snapshot,
        and the day only counts as synced once every account succeeded.
        """
        async with self._lock:
            today = self._today()
            if not force and self._collected_on == today:
                return None
            records = await accounts.list_all()
            collected: list[tuple[str, list[Offer]]] = []
            failed: list[str] = []
            for record in records:
                try:
                    offers = await client.get_offers(record.credentials)
                except BackendError:
                    logger.warning(
                        "Offer fetch failed for account",
                        exc_info=True,
                        extra={"title": record.title},
                    )
                    failed.append(record.title)
                    continue
                collected.append((record.title, offers))
            self._offers = collected
            self._failed = failed
            self._collected_on = None if failed else today
        logger.info(
            "Offer cache synced",
            extra={"accounts": len(collected), "failed_accounts": len(failed)},
        )
        return len(collected)

    def failed_titles(self) -> list[str]:
        """Return titles whose fetch failed during the last sync."""
        return list(self._failed)

    def snapshot(self) -> list[tuple[str, list[Offer]]]:
        """Return a copy of the cached (title, offers) pairs."""
        return [(title, list(offers)) for title, offers in self._offers]

    def offers_for(self, title: str) -> list[Offer] | None:
        """Return cached offers for one account, or None if not cached."""
        for cached_title, offers in self._offers:
            if cached_title == title:
                return list(offers)
        return None

    def invalidate(self) -> None:
        """Force the next sync to refetch."""
        self._collected_on = None
