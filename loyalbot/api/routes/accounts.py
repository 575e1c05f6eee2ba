"""Read-only listing of provisioned accounts."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from loyalbot.storage import AccountStore, AccountStoreError

router = APIRouter()


class AccountResponse(BaseModel):
    """Public account fields; session credentials are never exposed."""

    title: str
    phone_number: str
    card_number: str


@router.get(
    "/accounts",
    tags=["accounts"],
    response_model=list[AccountResponse],
)
async def list_accounts(request: Request) -> list[AccountResponse]:
    """List stored accounts ordered by title."""
    store = _resolve_account_store(request)
    try:
        records = await store.list_all()
    except AccountStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return [
        AccountResponse(
            title=record.title,
            phone_number=record.phone_number,
            card_number=record.card_number,
        )
        for record in records
    ]


def _resolve_account_store(request: Request) -> AccountStore:
    state_obj = cast("object", request.app.state)
    store_obj = getattr(state_obj, "account_store", None)
    if not isinstance(store_obj, AccountStore):
        message = "Missing app account store: app.state.account_store."
        raise TypeError(message)
    return store_obj
