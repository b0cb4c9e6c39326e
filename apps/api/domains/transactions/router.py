"""Bank transaction listing and manual linkage."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from apps.api.core.auth import Actor, require_admin
from apps.api.core.config import setting
from apps.api.domains.ingestion.store import TransactionStore
from apps.api.domains.transactions.schemas import (
    BankTransactionOut,
    LinkRequest,
    TransactionPage,
)
from apps.api.domains.transactions.service import link_transaction, list_transactions

router = APIRouter(prefix="/bank-transactions", tags=["transactions"])


def _store_for(actor: Actor) -> TransactionStore:
    return TransactionStore(actor.client, page_size=setting("TRANSACTION_PAGE_SIZE", 1000))


@router.get("", response_model=TransactionPage)
async def get_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=1000),
    linked: Optional[bool] = None,
    actor: Actor = Depends(require_admin),
):
    """Stored transactions, newest first. ``linked`` filters on pledge linkage."""
    rows = list_transactions(_store_for(actor), page, page_size, linked=linked)
    return TransactionPage(
        transactions=[BankTransactionOut.model_validate(r) for r in rows],
        page=page,
        page_size=page_size,
        count=len(rows),
    )


@router.patch("/{transaction_id}/link", response_model=BankTransactionOut)
async def update_link(
    transaction_id: int,
    request: LinkRequest,
    actor: Actor = Depends(require_admin),
):
    return link_transaction(_store_for(actor), transaction_id, request.changes(), actor=actor)
