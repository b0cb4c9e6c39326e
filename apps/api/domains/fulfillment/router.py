"""Fulfillment router: pledge, individual and organization figures, cash balance."""

from dataclasses import asdict

import structlog
from fastapi import APIRouter, Depends

from apps.api.core.auth import Actor, get_current_actor, require_admin
from apps.api.core.config import setting
from apps.api.core.pagination import deadline_after
from apps.api.domains.fulfillment.schemas import (
    BalanceResponse,
    IndividualFulfillmentResponse,
    OrganizationFulfillmentResponse,
    PledgeFulfillmentResponse,
)
from apps.api.domains.fulfillment.service import FulfillmentService
from apps.api.domains.ingestion.store import TransactionStore

router = APIRouter(prefix="/fulfillment", tags=["fulfillment"])
logger = structlog.get_logger()


def _service_for(actor: Actor) -> FulfillmentService:
    store = TransactionStore(actor.client, page_size=setting("TRANSACTION_PAGE_SIZE", 1000))
    return FulfillmentService(actor.client, store)


@router.get("/summary", response_model=OrganizationFulfillmentResponse)
async def organization_summary(actor: Actor = Depends(require_admin)):
    """Total pledged vs total received across the organization."""
    return asdict(_service_for(actor).organization())


@router.get("/pledges/{pledge_id}", response_model=PledgeFulfillmentResponse)
async def pledge_fulfillment(pledge_id: str, actor: Actor = Depends(require_admin)):
    return _service_for(actor).pledge(pledge_id).to_dict()


@router.post("/pledges/{pledge_id}/refresh", response_model=PledgeFulfillmentResponse)
async def refresh_pledge(pledge_id: str, actor: Actor = Depends(require_admin)):
    """Recompute the rate and persist it as the pledge's fulfillment_status."""
    return _service_for(actor).refresh_pledge_status(pledge_id).to_dict()


@router.get("/individuals/{individual_id}", response_model=IndividualFulfillmentResponse)
async def individual_fulfillment(
    individual_id: str,
    actor: Actor = Depends(get_current_actor),
):
    return asdict(_service_for(actor).individual(individual_id, actor))


@router.get("/balance", response_model=BalanceResponse)
async def cash_balance(actor: Actor = Depends(require_admin)):
    """Net balance over every stored bank transaction.

    Answers 504 when the scan outlives BALANCE_SCAN_TIMEOUT_SECONDS.
    """
    deadline = deadline_after(setting("BALANCE_SCAN_TIMEOUT_SECONDS", 30.0))
    return _service_for(actor).balance(deadline=deadline).to_dict()
