"""Manual reconciliation of bank transactions against pledges and outgoings.

Only the linkage columns change here. ``reconciled`` is derived: a
transaction is reconciled exactly when it links to a pledge or an outgoing.
"""

from typing import Any, Optional

import structlog
from supabase import Client

from apps.api.core.auth import Actor
from apps.api.core.errors import NotFoundError, StorageError, ValidationError
from apps.api.domains.ingestion.service import STORAGE_ERRORS, storage_error_message
from apps.api.domains.ingestion.store import TransactionStore

logger = structlog.get_logger()

LINK_COLUMNS = ("pledge_id", "outgoing_id")


def list_transactions(
    store: TransactionStore, page: int, page_size: int, linked: Optional[bool] = None
) -> list[dict]:
    try:
        return store.list_page(page, page_size, linked=linked)
    except STORAGE_ERRORS as e:
        raise StorageError(storage_error_message(e)) from e


def _pledge_exists(client: Client, pledge_id: Any) -> bool:
    response = client.table("pledges").select("id").eq("id", pledge_id).limit(1).execute()
    return bool(response.data)


def link_transaction(
    store: TransactionStore,
    transaction_id: Any,
    changes: dict,
    actor: Optional[Actor] = None,
) -> dict:
    """Apply link changes and recompute ``reconciled``.

    Raises:
        ValidationError: no link field was given.
        NotFoundError: the transaction or the target pledge does not exist.
        StorageError: Supabase failed the read or update.
    """
    changes = {k: v for k, v in changes.items() if k in LINK_COLUMNS}
    if not changes:
        raise ValidationError("Provide pledge_id and/or outgoing_id")

    try:
        current = store.get(transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        pledge_id = changes.get("pledge_id")
        if pledge_id is not None and not _pledge_exists(store.client, pledge_id):
            raise NotFoundError(f"Pledge {pledge_id} not found")

        merged = {column: current.get(column) for column in LINK_COLUMNS}
        merged.update(changes)
        values = {**changes, "reconciled": any(v is not None for v in merged.values())}
        updated = store.update_links(transaction_id, values)
    except STORAGE_ERRORS as e:
        logger.error("transaction_link_failed", transaction_id=transaction_id, error=storage_error_message(e))
        raise StorageError(storage_error_message(e)) from e

    logger.info(
        "transaction_linked",
        transaction_id=transaction_id,
        actor_id=actor.user_id if actor else None,
        **values,
    )
    return updated
