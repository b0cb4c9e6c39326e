"""Normalize, deduplicate and insert bank statements.

One call handles one upload, sequentially: read the CSV, fetch the
references already stored, drop duplicates, then insert the survivors in a
single atomic request. Per-row data problems are coerced and reported as
warnings; a storage failure fails the whole batch with nothing imported.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

import httpx
import structlog
from postgrest.exceptions import APIError

from apps.api.core.auth import Actor
from apps.api.domains.ingestion.store import TransactionStore
from packages.pledge_engine.dedup import partition_duplicates
from packages.pledge_engine.normalizer import (
    NormalizedTransaction,
    RowWarning,
    normalize_statement,
)

logger = structlog.get_logger()

DEFAULT_DUPLICATE_SAMPLE = 10

STORAGE_ERRORS = (APIError, httpx.HTTPError)


class ExistingReferencesError(Exception):
    """The store could not list the references imported so far."""


@dataclass
class IngestionResult:
    success: bool
    rows_imported: int
    duplicates_skipped: int
    message: str
    duplicate_references: list[str] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)


def storage_error_message(exc: Exception) -> str:
    """Human-readable message of a Supabase/PostgREST failure."""
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


def _build_message(inserted: int, duplicates: int, insert_error: Optional[str]) -> str:
    if insert_error:
        return f"Error inserting transactions: {insert_error}"
    message = f"Successfully imported {inserted} transactions."
    if duplicates:
        message += f" Skipped {duplicates} duplicate transactions."
    return message


def ingest_transactions(
    store: TransactionStore,
    candidates: Iterable[NormalizedTransaction],
    actor: Optional[Actor] = None,
    warnings: Optional[list[RowWarning]] = None,
    duplicate_sample: int = DEFAULT_DUPLICATE_SAMPLE,
) -> IngestionResult:
    """Deduplicate normalized transactions and insert the rest as one batch.

    Raises:
        ExistingReferencesError: the reference set could not be read; nothing
            was inserted.
    """
    log = logger.bind(actor_id=actor.user_id if actor else None)
    candidates = list(candidates)

    try:
        existing = store.fetch_existing_references()
    except STORAGE_ERRORS as e:
        log.error("existing_references_failed", error=storage_error_message(e))
        raise ExistingReferencesError(storage_error_message(e)) from e

    dedup = partition_duplicates(candidates, existing)
    duplicates = list(dedup.duplicates)
    inserted = 0
    insert_error = None

    if dedup.to_insert:
        try:
            outcome = store.insert_batch([tx.to_record() for tx in dedup.to_insert])
        except STORAGE_ERRORS as e:
            insert_error = storage_error_message(e)
            log.error(
                "batch_insert_failed",
                error=insert_error,
                batch_size=len(dedup.to_insert),
            )
        else:
            inserted = outcome.inserted
            duplicates.extend(outcome.conflicts)

    log.info(
        "statement_ingested",
        rows=len(candidates),
        rows_imported=inserted,
        duplicates_skipped=len(duplicates),
        warnings=len(warnings or []),
        failed=insert_error is not None,
    )

    return IngestionResult(
        success=insert_error is None,
        rows_imported=inserted,
        duplicates_skipped=len(duplicates),
        message=_build_message(inserted, len(duplicates), insert_error),
        duplicate_references=duplicates[:duplicate_sample],
        warnings=list(warnings or []),
    )


def ingest_statement(
    store: TransactionStore,
    content: bytes,
    actor: Optional[Actor] = None,
    duplicate_sample: int = DEFAULT_DUPLICATE_SAMPLE,
) -> IngestionResult:
    """Full CSV pipeline: normalize, then deduplicate and insert.

    Raises:
        StatementFormatError: the CSV is malformed; nothing was read or written.
        ExistingReferencesError: see ingest_transactions.
    """
    statement = normalize_statement(content)
    return ingest_transactions(
        store,
        statement.transactions,
        actor=actor,
        warnings=statement.warnings,
        duplicate_sample=duplicate_sample,
    )
