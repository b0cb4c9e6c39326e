"""
Bank statement normalizer.

Maps bank CSV exports with inconsistent headers onto the canonical
bank_transactions schema. Columns are resolved through an explicit ordered
alias table, dates are rebuilt from calendar components and amounts are
stripped of currency noise. Bad cell values never fail a batch: they are
coerced to None/0 and reported as RowWarning entries.
"""

import io
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


# Ordered alias table: canonical field -> headers tried in order.
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "transaction_reference": (
        "Transaction Reference",
        "TRANSACTION REFERENCE",
        "Reference",
        "REFERENCE",
    ),
    "value_date": ("Value Date", "VALUE DATE", "Value date"),
    "transaction_type": ("Transaction Type", "TRANSACTION TYPE", "Transaction type"),
    "posting_date": ("Posting Date", "POSTING DATE", "Posting date"),
    "debit_amount": ("Debit", "DEBIT", "Withdrawal", "WITHDRAWAL"),
    "credit_amount": ("Credit", "CREDIT", "Deposit", "DEPOSIT"),
    "balance": ("Balance", "BALANCE"),
    "description": ("Narrative", "NARRATIVE", "Description", "DESCRIPTION"),
    "counterparty_account": (
        "Beneficiary AC",
        "BENEFICIARY AC",
        "Beneficiary Account",
        "Benificiary AC",
    ),
    "counterparty_name": ("Beneficiary Name", "BENEFICIARY NAME", "Benificiary Name"),
    "transaction_date": ("Transaction Date", "TRANSACTION DATE", "Date", "DATE"),
    "branch_code": ("Branch Code", "BRANCH CODE"),
    "account_number": ("Account Number", "ACCOUNT NUMBER"),
}

DATE_FIELDS = ("value_date", "posting_date", "transaction_date")
AMOUNT_FIELDS = ("debit_amount", "credit_amount", "balance")

_DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})$")
_AMOUNT_STRIP = re.compile(r"[^\d.\-]")
_LEADING_NUMBER = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


class StatementFormatError(ValueError):
    """The uploaded file is not a well-formed CSV statement."""


@dataclass
class RowWarning:
    """A cell that was coerced to None/0 during normalization."""

    row: int  # 1-based data row, header excluded
    field: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NormalizedTransaction:
    """One bank ledger line in canonical form."""

    value_date: Optional[str] = None
    posting_date: Optional[str] = None
    transaction_date: Optional[str] = None
    transaction_type: str = ""
    transaction_reference: str = ""
    debit_amount: float = 0.0
    credit_amount: float = 0.0
    balance: float = 0.0
    description: str = ""
    counterparty_account: str = ""
    counterparty_name: str = ""
    branch_code: str = ""
    account_number: str = ""

    def to_record(self) -> Dict[str, Any]:
        """Row for the bank_transactions table, with import-time defaults.

        An empty reference is stored as NULL so the unique constraint on
        transaction_reference never compares two unreferenced rows.
        """
        record = asdict(self)
        record["transaction_reference"] = self.transaction_reference or None
        record.update(
            {
                "reconciled": False,
                "notes": "",
                "receipt_number": None,
                "pledge_id": None,
                "outgoing_id": None,
            }
        )
        return record


@dataclass
class NormalizedStatement:
    transactions: List[NormalizedTransaction] = field(default_factory=list)
    warnings: List[RowWarning] = field(default_factory=list)


def parse_date(value: Any) -> Optional[str]:
    """Parse a bank date into ``YYYY-MM-DD``.

    Day-first numeric dates (``31/01/2024``, ``31-01-2024``, ``31.01.2024``)
    are tried first. Anything else goes through pandas' generic parser. The
    output is always built from the parsed year/month/day, so an ISO string
    with an offset keeps its own calendar day. Returns None when the value
    cannot be read as a real calendar date.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    match = _DAY_FIRST_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return date(parsed.year, parsed.month, parsed.day).isoformat()


def parse_amount(value: Any) -> float:
    """Parse a currency string such as ``"ETB 1,234.50"``; 0.0 when unreadable."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return 0.0 if pd.isna(value) else float(value)
    cleaned = _AMOUNT_STRIP.sub("", str(value))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def _is_unreadable_amount(raw: str) -> bool:
    return bool(raw.strip()) and not _LEADING_NUMBER.match(_AMOUNT_STRIP.sub("", raw))


def resolve_field(row: Dict[str, str], canonical: str) -> str:
    """Return the first non-empty cell among the aliases of ``canonical``."""
    for alias in COLUMN_ALIASES[canonical]:
        cell = row.get(alias)
        if cell is not None and str(cell).strip():
            return str(cell)
    return ""


def normalize_row(
    row: Dict[str, str], row_number: int = 0
) -> Tuple[NormalizedTransaction, List[RowWarning]]:
    """Normalize one header->cell mapping into a canonical transaction."""
    warnings: List[RowWarning] = []
    values: Dict[str, Any] = {}

    for canonical in COLUMN_ALIASES:
        raw = resolve_field(row, canonical)
        if canonical in DATE_FIELDS:
            parsed = parse_date(raw)
            if raw.strip() and parsed is None:
                warnings.append(RowWarning(row_number, canonical, raw))
            values[canonical] = parsed
        elif canonical in AMOUNT_FIELDS:
            if _is_unreadable_amount(raw):
                warnings.append(RowWarning(row_number, canonical, raw))
            values[canonical] = parse_amount(raw)
        else:
            values[canonical] = raw.strip()

    return NormalizedTransaction(**values), warnings


def read_statement_frame(text: str) -> pd.DataFrame:
    """Read CSV text into an all-string DataFrame with trimmed headers.

    The header line is read as an ordinary row so it fixes the field count:
    any longer row makes the parser fail, and shorter rows come back padded
    with NaN. Either way the whole file is rejected with StatementFormatError.
    """
    try:
        raw = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise StatementFormatError("CSV parsing error: file is empty") from e
    except pd.errors.ParserError as e:
        raise StatementFormatError(f"CSV parsing error: {e}") from e

    header = [str(c).strip() for c in raw.iloc[0]]
    df = raw.iloc[1:].reset_index(drop=True)
    df.columns = header

    # Short rows are padded with NaN; real empty cells stay "".
    short_rows = df.index[df.isna().any(axis=1)]
    if len(short_rows) > 0:
        line = int(short_rows[0]) + 2
        raise StatementFormatError(
            f"CSV parsing error: Too few fields in line {line}, "
            f"expected {len(header)}"
        )

    # Repeated header names resolve to their first column.
    return df.loc[:, ~df.columns.duplicated()]


def normalize_statement(content: bytes) -> NormalizedStatement:
    """Decode, read and normalize a whole CSV bank statement."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise StatementFormatError("CSV parsing error: file is not UTF-8 text") from e

    df = read_statement_frame(text)
    statement = NormalizedStatement()

    for position, row in enumerate(df.to_dict(orient="records"), start=1):
        transaction, warnings = normalize_row(row, row_number=position)
        statement.transactions.append(transaction)
        statement.warnings.extend(warnings)

    if statement.warnings:
        logger.warning(
            "Coerced %d cell(s) while normalizing %d row(s)",
            len(statement.warnings),
            len(statement.transactions),
        )
    return statement
