"""Pydantic schemas for stored bank transactions."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class BankTransactionOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Any
    value_date: Optional[str] = None
    posting_date: Optional[str] = None
    transaction_date: Optional[str] = None
    transaction_type: Optional[str] = None
    transaction_reference: Optional[str] = None
    debit_amount: Optional[float] = None
    credit_amount: Optional[float] = None
    balance: Optional[float] = None
    description: Optional[str] = None
    counterparty_account: Optional[str] = None
    counterparty_name: Optional[str] = None
    branch_code: Optional[str] = None
    account_number: Optional[str] = None
    reconciled: bool = False
    notes: Optional[str] = None
    receipt_number: Optional[str] = None
    pledge_id: Optional[Any] = None
    outgoing_id: Optional[Any] = None


class TransactionPage(BaseModel):
    transactions: list[BankTransactionOut]
    page: int
    page_size: int
    count: int


class LinkRequest(BaseModel):
    """Set or clear a transaction's pledge and/or outgoing link.

    Omitted fields are left alone; an explicit null clears the link.
    """

    pledge_id: Optional[str] = None
    outgoing_id: Optional[str] = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}
