"""Offer caching for provisioned accounts."""

from .cache import AccountLister, OfferCache, OffersClient

__all__ = [
    "AccountLister",
    "OfferCache",
    "OffersClient",
]
