"""Pydantic schemas for the fulfillment domain."""

from typing import Any

from pydantic import BaseModel


class PledgeFulfillmentResponse(BaseModel):
    """Committed vs received for one pledge."""

    pledge_id: Any
    individual_id: Any = None
    commitment: float
    received: float
    fulfillment_rate: int
    active: bool


class IndividualFulfillmentResponse(BaseModel):
    individual_id: Any
    pledge_count: int
    commitment: float
    received: float
    fulfillment_rate: int
    pledges: list[PledgeFulfillmentResponse]


class OrganizationFulfillmentResponse(BaseModel):
    """Organization-wide totals for the operator dashboard."""

    total_pledged: float
    total_received: float
    fulfillment_rate: int
    total_pledges: int
    active_pledges: int
    total_individuals: int


class BalanceResponse(BaseModel):
    total_inflow: float
    total_outflow: float
    balance: float
    transaction_count: int
