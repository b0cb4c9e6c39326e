"""Pydantic schemas for pledge submission and removal."""

from typing import Any, Optional

from pydantic import Field

from apps.api.domains.ingestion.schemas import CamelModel


class PublicPledgeRequest(CamelModel):
    """The public pledge form. Accepts camelCase or snake_case keys."""

    full_name: str = ""
    email: Optional[str] = None
    phone_number: str = ""
    date_of_commitment: Optional[str] = None
    missionaries_committed: int = Field(default=0, ge=0)
    frequency: Optional[str] = None
    amount: float = Field(default=0.0, ge=0)
    special_support_amount: float = Field(default=0.0, ge=0)
    special_support_frequency: Optional[str] = None
    in_kind_support: bool = False
    in_kind_support_details: Optional[str] = None


class PublicPledgeResponse(CamelModel):
    success: bool = True
    message: str
    pledge_id: Any
    individual_id: Any


class DeletePledgeResponse(CamelModel):
    success: bool = True
    pledge_id: Any
    transactions_unlinked: int
