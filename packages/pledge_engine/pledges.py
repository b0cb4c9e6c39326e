"""Pledge amounts and pledge-shape validation."""

from enum import Enum
from typing import Any, Dict, Optional


class Frequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    ONE_TIME = "one-time"


PAYMENTS_PER_YEAR = {
    Frequency.MONTHLY.value: 12,
    Frequency.QUARTERLY.value: 4,
    Frequency.ANNUALLY.value: 1,
    Frequency.ONE_TIME.value: 1,
}

# Unknown frequencies are treated as monthly.
DEFAULT_PAYMENTS_PER_YEAR = 12


class PledgeValidationError(ValueError):
    """The submitted pledge does not describe any valid form of support."""


def yearly_amount(amount: Optional[float], frequency: Optional[str]) -> float:
    """Annualize a periodic amount.

    monthly x12, quarterly x4, annually x1, one-time x1, anything else x12.
    No frequency or no amount means nothing is pledged: 0.
    """
    if not frequency or not amount:
        return 0.0
    multiplier = PAYMENTS_PER_YEAR.get(
        frequency.strip().lower(), DEFAULT_PAYMENTS_PER_YEAR
    )
    return float(amount) * multiplier


def build_pledge_fields(
    *,
    missionaries_committed: int = 0,
    frequency: Optional[str] = None,
    amount: float = 0.0,
    special_support_amount: float = 0.0,
    special_support_frequency: Optional[str] = None,
    in_kind_support: bool = False,
    in_kind_support_details: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate a pledge submission and return its pledges-table columns.

    A pledge must carry missionary support, special support or in-kind
    support, and any monetary support needs a frequency.
    """
    has_missionary = amount > 0 and missionaries_committed > 0
    has_special = special_support_amount > 0
    has_in_kind = bool(in_kind_support and in_kind_support_details)

    if not (has_missionary or has_special or has_in_kind):
        raise PledgeValidationError(
            "Please select at least one type of support (Missionary, Special, or In-Kind)"
        )
    if has_missionary and not frequency:
        raise PledgeValidationError("Please select a frequency for missionary support")
    if has_special and not special_support_frequency:
        raise PledgeValidationError("Please select a frequency for special support")

    fields: Dict[str, Any] = {}

    if has_missionary:
        fields.update(
            frequency=frequency.lower(),
            amount_per_frequency=amount,
            missionaries_committed=missionaries_committed,
            yearly_missionary_support=yearly_amount(amount, frequency),
        )
    else:
        fields.update(
            frequency=None,
            amount_per_frequency=0,
            missionaries_committed=0,
            yearly_missionary_support=0,
        )

    if has_special:
        fields.update(
            special_support_amount=special_support_amount,
            special_support_frequency=special_support_frequency.lower(),
            yearly_special_support=yearly_amount(
                special_support_amount, special_support_frequency
            ),
        )
    else:
        fields.update(
            special_support_amount=0,
            special_support_frequency=None,
            yearly_special_support=0,
        )

    fields["in_kind_support"] = has_in_kind
    fields["in_kind_support_details"] = in_kind_support_details if has_in_kind else None
    fields["fulfillment_status"] = 0
    return fields
