"""
Pledge Engine

Bank statement normalization, duplicate filtering and pledge
fulfillment / cash balance aggregation.
"""

__version__ = "0.1.0"

from .balance import BalanceSummary, compute_balance, compute_balance_from_pages
from .dedup import DedupResult, partition_duplicates
from .fulfillment import (
    IndividualFulfillment,
    OrganizationFulfillment,
    PledgeFulfillment,
    fulfillment_rate,
    summarize_individual,
    summarize_organization,
    summarize_pledge,
    summarize_pledges,
)
from .normalizer import (
    COLUMN_ALIASES,
    NormalizedStatement,
    NormalizedTransaction,
    RowWarning,
    StatementFormatError,
    normalize_row,
    normalize_statement,
    parse_amount,
    parse_date,
)
from .pledges import Frequency, PledgeValidationError, build_pledge_fields, yearly_amount

__all__ = [
    "BalanceSummary",
    "compute_balance",
    "compute_balance_from_pages",
    "DedupResult",
    "partition_duplicates",
    "IndividualFulfillment",
    "OrganizationFulfillment",
    "PledgeFulfillment",
    "fulfillment_rate",
    "summarize_individual",
    "summarize_organization",
    "summarize_pledge",
    "summarize_pledges",
    "COLUMN_ALIASES",
    "NormalizedStatement",
    "NormalizedTransaction",
    "RowWarning",
    "StatementFormatError",
    "normalize_row",
    "normalize_statement",
    "parse_amount",
    "parse_date",
    "Frequency",
    "PledgeValidationError",
    "build_pledge_fields",
    "yearly_amount",
]
