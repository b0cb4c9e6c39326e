"""
Pledge fulfillment aggregation.

Compares what supporters committed per year with the credits that operators
have linked to their pledges. Inputs are plain row dicts as returned by
Supabase; missing or non-numeric amounts count as zero.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

COMMITMENT_COLUMNS = ("yearly_missionary_support", "yearly_special_support")


def fulfillment_rate(received: float, commitment: float) -> int:
    """Percentage of ``commitment`` covered by ``received``, rounded half up."""
    if not commitment or commitment <= 0:
        return 0
    return int(math.floor(received / commitment * 100 + 0.5))


def _plain(value: Any) -> Any:
    """Convert numpy scalars and NaN into JSON-safe Python values."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if hasattr(value, "item"):
        return value.item()
    return value


def _numeric(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").fillna(0.0)


def _pledge_frame(pledges: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(list(pledges))
    for col in ("id", "individual_id", *COMMITMENT_COLUMNS):
        if col not in df.columns:
            df[col] = None
    df["commitment"] = sum(_numeric(df[col]) for col in COMMITMENT_COLUMNS) if len(df) else 0.0
    return df


def _received_by_pledge(transactions: Iterable[Mapping[str, Any]]) -> pd.Series:
    df = pd.DataFrame(list(transactions))
    if df.empty or "pledge_id" not in df.columns:
        return pd.Series(dtype=float)
    if "credit_amount" not in df.columns:
        df["credit_amount"] = 0.0
    df = df[df["pledge_id"].notna()]
    return _numeric(df["credit_amount"]).groupby(df["pledge_id"]).sum()


def total_credits(transactions: Iterable[Mapping[str, Any]]) -> float:
    """Sum of credit_amount over rows that are linked to a pledge."""
    return float(_received_by_pledge(transactions).sum())


@dataclass
class PledgeFulfillment:
    pledge_id: Any
    individual_id: Any
    commitment: float
    received: float
    fulfillment_rate: int
    active: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IndividualFulfillment:
    individual_id: Any
    pledge_count: int
    commitment: float
    received: float
    fulfillment_rate: int
    pledges: List[PledgeFulfillment]


@dataclass
class OrganizationFulfillment:
    total_pledged: float
    total_received: float
    fulfillment_rate: int
    total_pledges: int
    active_pledges: int
    total_individuals: int


def summarize_pledges(
    pledges: Iterable[Mapping[str, Any]],
    transactions: Iterable[Mapping[str, Any]],
) -> List[PledgeFulfillment]:
    """Fulfillment of every pledge given the transactions linked to them.

    A pledge stays active while its unrounded rate is below 100%.
    """
    df = _pledge_frame(pledges)
    if df.empty:
        return []

    received = _received_by_pledge(transactions)
    df["received"] = df["id"].map(received).fillna(0.0)

    results = []
    for row in df.itertuples(index=False):
        commitment = float(row.commitment)
        amount = float(row.received)
        raw_rate = amount / commitment * 100 if commitment > 0 else 0.0
        results.append(
            PledgeFulfillment(
                pledge_id=_plain(row.id),
                individual_id=_plain(row.individual_id),
                commitment=commitment,
                received=amount,
                fulfillment_rate=fulfillment_rate(amount, commitment),
                active=raw_rate < 100,
            )
        )
    return results


def summarize_pledge(
    pledge: Mapping[str, Any], transactions: Iterable[Mapping[str, Any]]
) -> PledgeFulfillment:
    linked = [t for t in transactions if t.get("pledge_id") == pledge.get("id")]
    return summarize_pledges([pledge], linked)[0]


def summarize_individual(
    individual_id: Any,
    pledges: Iterable[Mapping[str, Any]],
    transactions: Iterable[Mapping[str, Any]],
) -> IndividualFulfillment:
    """Roll all of an individual's pledges into one commitment and rate."""
    own = [p for p in pledges if p.get("individual_id") == individual_id]
    per_pledge = summarize_pledges(own, transactions)
    commitment = sum(p.commitment for p in per_pledge)
    received = sum(p.received for p in per_pledge)
    return IndividualFulfillment(
        individual_id=individual_id,
        pledge_count=len(per_pledge),
        commitment=commitment,
        received=received,
        fulfillment_rate=fulfillment_rate(received, commitment),
        pledges=per_pledge,
    )


def summarize_organization(
    pledges: Iterable[Mapping[str, Any]],
    linked_transactions: Iterable[Mapping[str, Any]],
    total_individuals: Optional[int] = None,
) -> OrganizationFulfillment:
    """Organization-wide pledged vs received.

    ``total_received`` counts every linked credit, including credits linked
    to pledges missing from ``pledges``.
    """
    pledges = list(pledges)
    linked_transactions = list(linked_transactions)

    per_pledge = summarize_pledges(pledges, linked_transactions)
    total_pledged = float(sum(p.commitment for p in per_pledge))
    total_received = total_credits(linked_transactions)

    if total_individuals is None:
        total_individuals = len(
            {p.individual_id for p in per_pledge if p.individual_id is not None}
        )

    return OrganizationFulfillment(
        total_pledged=total_pledged,
        total_received=total_received,
        fulfillment_rate=fulfillment_rate(total_received, total_pledged),
        total_pledges=len(per_pledge),
        active_pledges=sum(1 for p in per_pledge if p.active),
        total_individuals=total_individuals,
    )
