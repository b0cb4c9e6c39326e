"""bank_transactions reads and writes through Supabase.

Rows are append-only. After import only the linkage columns (pledge_id,
outgoing_id, reconciled) ever change.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

import structlog
from supabase import Client

from apps.api.core.pagination import DEFAULT_PAGE_SIZE, fetch_all, iter_pages

logger = structlog.get_logger()

TABLE = "bank_transactions"
REFERENCE_COLUMN = "transaction_reference"


@dataclass
class InsertOutcome:
    inserted: int = 0
    conflicts: list[str] = field(default_factory=list)


class TransactionStore:
    """Thin wrapper over the bank_transactions table."""

    def __init__(self, client: Client, page_size: int = DEFAULT_PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    def _table(self):
        return self.client.table(TABLE)

    def iter_pages(
        self,
        columns: str = "*",
        *,
        linked_only: bool = False,
        pledge_ids: Optional[Iterable[Any]] = None,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[list[dict]]:
        """Page through transactions ordered by id."""
        pledge_ids = list(pledge_ids) if pledge_ids is not None else None

        def query():
            q = self._table().select(columns)
            if linked_only:
                q = q.not_.is_("pledge_id", "null")
            if pledge_ids is not None:
                q = q.in_("pledge_id", pledge_ids)
            return q.order("id")

        return iter_pages(
            query, page_size=self.page_size, deadline=deadline, cancel=cancel
        )

    def fetch_existing_references(self) -> set[str]:
        """Every non-empty reference persisted so far."""
        rows = fetch_all(
            lambda: self._table().select(REFERENCE_COLUMN).order("id"),
            page_size=self.page_size,
        )
        return {row[REFERENCE_COLUMN] for row in rows if row.get(REFERENCE_COLUMN)}

    def fetch_linked_credits(self, pledge_ids: Optional[Iterable[Any]] = None) -> list[dict]:
        """pledge_id/credit_amount of every transaction linked to a pledge."""
        if pledge_ids is not None:
            pledge_ids = list(pledge_ids)
            if not pledge_ids:
                return []
        rows: list[dict] = []
        for page in self.iter_pages(
            "pledge_id, credit_amount", linked_only=True, pledge_ids=pledge_ids
        ):
            rows.extend(page)
        return rows

    def insert_batch(self, records: list[dict]) -> InsertOutcome:
        """Insert all records in one request.

        The request is a single statement, so it either lands whole or not at
        all; Supabase errors propagate to the caller. Rows whose reference
        already exists (an upload racing this one) are skipped by the unique
        constraint and come back as conflicts.
        """
        if not records:
            return InsertOutcome()

        response = (
            self._table()
            .upsert(records, on_conflict=REFERENCE_COLUMN, ignore_duplicates=True)
            .execute()
        )
        returned = response.data or []
        inserted_refs = {row.get(REFERENCE_COLUMN) for row in returned}
        conflicts = [
            record[REFERENCE_COLUMN]
            for record in records
            if record.get(REFERENCE_COLUMN) and record[REFERENCE_COLUMN] not in inserted_refs
        ]
        if conflicts:
            logger.warning("insert_conflicts", count=len(conflicts))
        return InsertOutcome(inserted=len(returned), conflicts=conflicts)

    def list_page(self, page: int, page_size: int, linked: Optional[bool] = None) -> list[dict]:
        """One page of transactions, newest id first, for operator screens."""
        start = (page - 1) * page_size
        q = self._table().select("*")
        if linked is True:
            q = q.not_.is_("pledge_id", "null")
        elif linked is False:
            q = q.is_("pledge_id", "null")
        response = q.order("id", desc=True).range(start, start + page_size - 1).execute()
        return response.data or []

    def get(self, transaction_id: Any) -> Optional[dict]:
        response = self._table().select("*").eq("id", transaction_id).limit(1).execute()
        rows = response.data or []
        return rows[0] if rows else None

    def update_links(self, transaction_id: Any, values: dict) -> Optional[dict]:
        response = self._table().update(values).eq("id", transaction_id).execute()
        rows = response.data or []
        return rows[0] if rows else None

    def clear_pledge_links(self, pledge_id: Any) -> int:
        """Detach every transaction from a pledge that is being deleted.

        Rows still linked to an outgoing stay reconciled.
        """
        unlinked = (
            self._table()
            .update({"pledge_id": None, "reconciled": False})
            .eq("pledge_id", pledge_id)
            .is_("outgoing_id", "null")
            .execute()
        )
        still_linked = (
            self._table()
            .update({"pledge_id": None})
            .eq("pledge_id", pledge_id)
            .execute()
        )
        return len(unlinked.data or []) + len(still_linked.data or [])
