"""Pydantic schemas for commitment review."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ReviewDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewRequest(BaseModel):
    status: ReviewDecision
    notes: Optional[str] = None


class CommitmentOut(BaseModel):
    id: Any
    pledge_id: Any = None
    amount: Optional[float] = None
    bank_name: Optional[str] = None
    transaction_reference: Optional[str] = None
    receipt_url: Optional[str] = None
    status: str
    notes: Optional[str] = None
