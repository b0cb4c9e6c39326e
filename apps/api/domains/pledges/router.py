"""Pledge router: public submission form and operator deletion."""

from fastapi import APIRouter, Depends
from supabase import Client

from apps.api.core.auth import Actor, get_service_client, require_admin
from apps.api.core.config import setting
from apps.api.domains.ingestion.store import TransactionStore
from apps.api.domains.pledges.schemas import (
    DeletePledgeResponse,
    PublicPledgeRequest,
    PublicPledgeResponse,
)
from apps.api.domains.pledges.service import (
    SUCCESS_MESSAGE,
    delete_pledge,
    submit_public_pledge,
)

router = APIRouter(prefix="/pledges", tags=["pledges"])


@router.post("/public", response_model=PublicPledgeResponse, status_code=201)
async def public_pledge(
    request: PublicPledgeRequest,
    client: Client = Depends(get_service_client),
):
    """Unauthenticated pledge form submission."""
    submitted = submit_public_pledge(client, request)
    return PublicPledgeResponse(
        message=SUCCESS_MESSAGE,
        pledge_id=submitted.pledge_id,
        individual_id=submitted.individual_id,
    )


@router.delete("/{pledge_id}", response_model=DeletePledgeResponse)
async def remove_pledge(pledge_id: str, actor: Actor = Depends(require_admin)):
    store = TransactionStore(actor.client, page_size=setting("TRANSACTION_PAGE_SIZE", 1000))
    unlinked = delete_pledge(actor.client, store, pledge_id, actor=actor)
    return DeletePledgeResponse(pledge_id=pledge_id, transactions_unlinked=unlinked)
