"""Commitment review: an operator approves or rejects a supporter's payment claim.

pending -> approved | rejected. Both outcomes are final.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from supabase import Client

from apps.api.core.auth import Actor
from apps.api.core.errors import ConflictError, NotFoundError, StorageError
from apps.api.domains.ingestion.service import STORAGE_ERRORS, storage_error_message

logger = structlog.get_logger()

PENDING = "pending"


def _notify_supporter(client: Client, commitment: dict, status: str, notes: Optional[str]) -> None:
    amount = float(commitment.get("amount") or 0)
    message = f"Your commitment of {amount:,.2f} has been {status}"
    if notes:
        message += f": {notes}"
    try:
        client.table("notifications").insert(
            {
                "type": "commitment_status",
                "title": f"Commitment {status.capitalize()}",
                "message": message,
                "related_id": commitment.get("pledge_id"),
                "is_read": False,
                "for_admins": False,
            }
        ).execute()
    except STORAGE_ERRORS as e:
        logger.warning(
            "commitment_notification_failed",
            commitment_id=commitment.get("id"),
            error=storage_error_message(e),
        )


def review_commitment(
    client: Client,
    commitment_id: Any,
    status: str,
    notes: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> dict:
    """Move a pending commitment to ``status``.

    The update is conditional on the row still being pending, so two
    operators reviewing at once cannot both succeed.

    Raises:
        NotFoundError: no such commitment.
        ConflictError: the commitment was already approved or rejected.
    """
    try:
        response = (
            client.table("commitments").select("*").eq("id", commitment_id).limit(1).execute()
        )
        rows = response.data or []
        if not rows:
            raise NotFoundError(f"Commitment {commitment_id} not found")
        commitment = rows[0]
        if commitment.get("status") != PENDING:
            raise ConflictError(
                f"Commitment {commitment_id} is already {commitment.get('status')}"
            )

        updated = (
            client.table("commitments")
            .update(
                {
                    "status": status,
                    "notes": notes or None,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            .eq("id", commitment_id)
            .eq("status", PENDING)
            .execute()
        )
    except STORAGE_ERRORS as e:
        logger.error("commitment_review_failed", commitment_id=commitment_id, error=storage_error_message(e))
        raise StorageError(storage_error_message(e)) from e

    if not updated.data:
        raise ConflictError(f"Commitment {commitment_id} was reviewed by someone else")

    logger.info(
        "commitment_reviewed",
        commitment_id=commitment_id,
        status=status,
        actor_id=actor.user_id if actor else None,
    )
    _notify_supporter(client, commitment, status, notes)
    return updated.data[0]
