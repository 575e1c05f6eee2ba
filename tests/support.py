"""Builders shared across test modules."""

from __future__ import annotations

from loyalbot.backend import AccountRecord, Offer, SessionCredentials

OPERATOR_ID = 1001
OUTSIDER_ID = 2002


def build_record(
    title: str = "store",
    *,
    phone_number: str = "+15551234",
    card_number: str = "9900112233",
    csrf_token: str = "tok42",
) -> AccountRecord:
    """Build a fully authenticated account record."""
    return AccountRecord(
        title=title,
        phone_number=phone_number,
        card_number=card_number,
        external_customer_id=f"ext-{title}",
        auth_token=f"auth-{title}",
        credentials=SessionCredentials(
            session_token_a="abc",
            session_token_b=f"%3Bcrf%3D{csrf_token}%3B",
            csrf_token=csrf_token,
        ),
    )


def build_offer(name: str = "Coffee", *, offer_id: str = "offer-1") -> Offer:
    """Build an offer with readable price fields."""
    return Offer(
        offer_id=offer_id,
        name=name,
        details="Any size;Once a day\nTOP;BOTTOM",
        limit="1 per day",
        image=None,
        human_time="until Sunday",
        regular_price="9.99",
        regular_price_unit="9.99/pcs",
        offer_price="4.99",
        offer_price_unit="4.99/pcs",
        discount_percent=50,
    )


VALID_SECRETS = """
ean_frontend = "https://cards.test/ean/"
cdn_root = "https://cdn.test/"
api_token = "http-token"

[telegram_config]
api_id = 12345
api_hash = "hash"
bot_token = "bot:token"
maintainer_ids = [1001, 1002]

[api_config]
api_root = "https://loyalty.test/screenservices/"
brand_name = "Brand"
anonymous_csrf = "anon-csrf"
legal_ids = ["terms-1"]
module_version = "mod-v1"
sms_api_version = "sms-v1"
next_step_version = "step-v1"
create_account_version = "create-v1"
login_api_version = "login-v1"
promo_sync_api_version = "promo-v1"
"""
