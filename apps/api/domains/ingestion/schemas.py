"""Pydantic schemas for the ingestion domain.

Upload responses keep the camelCase keys the dashboard already reads.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from packages.pledge_engine.normalizer import (
    NormalizedTransaction,
    parse_amount,
    parse_date,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RowWarningOut(CamelModel):
    """A cell coerced to null/zero during normalization."""

    row: int
    field: str
    value: str


class IngestResponse(CamelModel):
    """Result of a bank statement upload."""

    success: bool
    rows_imported: int
    duplicates_skipped: int
    message: str
    duplicate_references: list[str] = Field(default_factory=list)
    warnings: list[RowWarningOut] = Field(default_factory=list)


class MappedTransaction(BaseModel):
    """A bank row whose columns an operator already mapped by hand."""

    value_date: Optional[str] = None
    posting_date: Optional[str] = None
    transaction_date: Optional[str] = None
    transaction_type: str = ""
    transaction_reference: str = ""
    debit_amount: Union[float, str, None] = 0.0
    credit_amount: Union[float, str, None] = 0.0
    balance: Union[float, str, None] = 0.0
    description: str = ""
    counterparty_account: str = ""
    counterparty_name: str = ""
    branch_code: str = ""
    account_number: str = ""

    @field_validator("value_date", "posting_date", "transaction_date", mode="before")
    @classmethod
    def _normalize_date(cls, value):
        return parse_date(value)

    @field_validator("debit_amount", "credit_amount", "balance", mode="after")
    @classmethod
    def _normalize_amount(cls, value):
        return parse_amount(value)

    @field_validator(
        "transaction_type",
        "transaction_reference",
        "description",
        "counterparty_account",
        "counterparty_name",
        "branch_code",
        "account_number",
        mode="before",
    )
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value).strip()

    def to_normalized(self) -> NormalizedTransaction:
        return NormalizedTransaction(**self.model_dump())


class MappedUploadRequest(BaseModel):
    transactions: list[MappedTransaction]
