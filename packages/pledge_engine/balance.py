"""Net cash balance over bank transaction rows."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd


@dataclass
class BalanceSummary:
    total_inflow: float
    total_outflow: float
    balance: float
    transaction_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _column_total(df: pd.DataFrame, column: str, absolute: bool = False) -> float:
    if column not in df.columns:
        return 0.0
    values = pd.to_numeric(df[column], errors="coerce").fillna(0.0)
    if absolute:
        values = values.abs()
    return float(values.sum())


def compute_balance(rows: Iterable[Mapping[str, Any]]) -> BalanceSummary:
    """balance = sum(credit_amount) - sum(|debit_amount|).

    Debits are taken as absolute values because some banks export them
    signed and others unsigned.
    """
    df = pd.DataFrame(list(rows))
    inflow = _column_total(df, "credit_amount")
    outflow = _column_total(df, "debit_amount", absolute=True)
    return BalanceSummary(
        total_inflow=inflow,
        total_outflow=outflow,
        balance=inflow - outflow,
        transaction_count=len(df),
    )


def compute_balance_from_pages(pages: Iterable[List[Mapping[str, Any]]]) -> BalanceSummary:
    """Accumulate every page in memory, then compute the balance once."""
    accumulated: List[Mapping[str, Any]] = []
    for page in pages:
        accumulated.extend(page)
    return compute_balance(accumulated)
