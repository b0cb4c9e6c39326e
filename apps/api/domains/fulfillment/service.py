"""Fulfillment service: pledge, individual and organization figures.

Reads pledges and linked transactions through Supabase and hands plain rows
to packages/pledge_engine for the arithmetic. Supabase failures surface as
StorageError (502).
"""

import threading
from typing import Any, Optional

import structlog
from supabase import Client

from apps.api.core.auth import Actor
from apps.api.core.errors import ForbiddenError, NotFoundError, StorageError
from apps.api.core.pagination import fetch_all
from apps.api.domains.ingestion.service import STORAGE_ERRORS, storage_error_message
from apps.api.domains.ingestion.store import TransactionStore
from packages.pledge_engine.balance import BalanceSummary, compute_balance_from_pages
from packages.pledge_engine.fulfillment import (
    IndividualFulfillment,
    OrganizationFulfillment,
    PledgeFulfillment,
    summarize_individual,
    summarize_organization,
    summarize_pledge,
)

logger = structlog.get_logger()

PLEDGE_COLUMNS = "id, individual_id, yearly_missionary_support, yearly_special_support"


class FulfillmentService:
    def __init__(self, client: Client, store: TransactionStore):
        self.client = client
        self.store = store

    def _fail(self, event: str, exc: Exception) -> StorageError:
        message = storage_error_message(exc)
        logger.error(event, error=message)
        return StorageError(message)

    def _get_pledge(self, pledge_id: Any) -> dict:
        try:
            response = (
                self.client.table("pledges")
                .select(PLEDGE_COLUMNS)
                .eq("id", pledge_id)
                .limit(1)
                .execute()
            )
        except STORAGE_ERRORS as e:
            raise self._fail("pledge_lookup_failed", e) from e
        rows = response.data or []
        if not rows:
            raise NotFoundError(f"Pledge {pledge_id} not found")
        return rows[0]

    def pledge(self, pledge_id: Any) -> PledgeFulfillment:
        pledge = self._get_pledge(pledge_id)
        try:
            credits = self.store.fetch_linked_credits([pledge["id"]])
        except STORAGE_ERRORS as e:
            raise self._fail("linked_credits_failed", e) from e
        return summarize_pledge(pledge, credits)

    def refresh_pledge_status(self, pledge_id: Any) -> PledgeFulfillment:
        """Store the pledge's current rate, clamped to 0-100, in fulfillment_status."""
        result = self.pledge(pledge_id)
        status = max(0, min(100, result.fulfillment_rate))
        try:
            self.client.table("pledges").update({"fulfillment_status": status}).eq(
                "id", result.pledge_id
            ).execute()
        except STORAGE_ERRORS as e:
            raise self._fail("fulfillment_status_update_failed", e) from e
        logger.info("fulfillment_status_refreshed", pledge_id=result.pledge_id, status=status)
        return result

    def individual(self, individual_id: Any, actor: Actor) -> IndividualFulfillment:
        """Fulfillment of one individual.

        Operators may read anyone; a supporter only the individual linked to
        their own account.
        """
        try:
            response = (
                self.client.table("individuals")
                .select("id, user_id")
                .eq("id", individual_id)
                .limit(1)
                .execute()
            )
        except STORAGE_ERRORS as e:
            raise self._fail("individual_lookup_failed", e) from e
        rows = response.data or []
        if not rows:
            raise NotFoundError(f"Individual {individual_id} not found")

        individual = rows[0]
        if not actor.is_admin and individual.get("user_id") != actor.user_id:
            logger.warning(
                "individual_access_denied",
                individual_id=individual_id,
                actor_id=actor.user_id,
            )
            raise ForbiddenError("You can only view your own pledges")

        try:
            pledges = fetch_all(
                lambda: self.client.table("pledges")
                .select(PLEDGE_COLUMNS)
                .eq("individual_id", individual["id"])
                .order("id"),
                page_size=self.store.page_size,
            )
            credits = self.store.fetch_linked_credits([p["id"] for p in pledges])
        except STORAGE_ERRORS as e:
            raise self._fail("individual_fulfillment_failed", e) from e
        return summarize_individual(individual["id"], pledges, credits)

    def organization(self) -> OrganizationFulfillment:
        try:
            pledges = fetch_all(
                lambda: self.client.table("pledges").select(PLEDGE_COLUMNS).order("id"),
                page_size=self.store.page_size,
            )
            individuals = fetch_all(
                lambda: self.client.table("individuals").select("id").order("id"),
                page_size=self.store.page_size,
            )
            credits = self.store.fetch_linked_credits()
        except STORAGE_ERRORS as e:
            raise self._fail("organization_fulfillment_failed", e) from e
        return summarize_organization(pledges, credits, total_individuals=len(individuals))

    def balance(
        self,
        deadline: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> BalanceSummary:
        """Net cash balance over every stored transaction.

        Raises:
            ScanCancelledError: the deadline passed or ``cancel`` was set
                before the last page was read.
        """
        pages = self.store.iter_pages(
            "id, credit_amount, debit_amount", deadline=deadline, cancel=cancel
        )
        try:
            summary = compute_balance_from_pages(pages)
        except STORAGE_ERRORS as e:
            raise self._fail("balance_scan_failed", e) from e
        logger.info(
            "balance_computed",
            transaction_count=summary.transaction_count,
            balance=summary.balance,
        )
        return summary
