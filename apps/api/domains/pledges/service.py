"""Pledge submission and deletion.

Public submissions run with the service-role client: the form is
unauthenticated, so the individual is found (or created) by phone number.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Optional

import structlog
from supabase import Client

from apps.api.core.auth import Actor
from apps.api.core.errors import NotFoundError, StorageError, ValidationError
from apps.api.domains.ingestion.service import STORAGE_ERRORS, storage_error_message
from apps.api.domains.ingestion.store import TransactionStore
from apps.api.domains.pledges.schemas import PublicPledgeRequest
from packages.pledge_engine.pledges import PledgeValidationError, build_pledge_fields

logger = structlog.get_logger()

SUBMISSION_SOURCE = "public_link"
SUCCESS_MESSAGE = (
    "Thank you! Your pledge has been submitted successfully and is pending review."
)

# Check constraints on the pledges table and what the submitter should fix.
CONSTRAINT_HINTS = {
    "pledges_frequency_missionary_check": (
        "Please ensure missionary support amount and frequency are both provided."
    ),
    "pledges_special_frequency_check": (
        "Please ensure special support frequency is valid (monthly, quarterly, or annually)."
    ),
}


@dataclass
class SubmittedPledge:
    pledge_id: Any
    individual_id: Any


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _find_or_create_individual(client: Client, request: PublicPledgeRequest) -> Any:
    response = (
        client.table("individuals")
        .select("id, email")
        .eq("phone_number", request.phone_number)
        .limit(1)
        .execute()
    )
    existing = response.data or []

    if existing:
        individual = existing[0]
        client.table("individuals").update(
            {
                "name": request.full_name,
                "email": request.email or individual.get("email"),
                "updated_at": _now(),
            }
        ).eq("id", individual["id"]).execute()
        logger.info("individual_matched_by_phone", individual_id=individual["id"])
        return individual["id"]

    created = (
        client.table("individuals")
        .insert(
            {
                "name": request.full_name,
                "phone_number": request.phone_number,
                "email": request.email or None,
            }
        )
        .execute()
    )
    if not created.data:
        raise StorageError("Failed to create individual profile")
    logger.info("individual_created", individual_id=created.data[0]["id"])
    return created.data[0]["id"]


def _notify_admins(client: Client, full_name: str, pledge_id: Any) -> None:
    """Best-effort dashboard notification; the pledge is already stored."""
    try:
        client.table("notifications").insert(
            {
                "title": "New Public Pledge Submission",
                "message": (
                    f"{full_name} has submitted a new pledge via the public form. "
                    "Please review and approve."
                ),
                "type": "pledge",
                "related_id": pledge_id,
                "is_read": False,
                "for_admins": True,
            }
        ).execute()
    except STORAGE_ERRORS as e:
        logger.warning("admin_notification_failed", pledge_id=pledge_id, error=storage_error_message(e))


def submit_public_pledge(client: Client, request: PublicPledgeRequest) -> SubmittedPledge:
    """Validate a public form submission and store it as a pending pledge.

    Raises:
        ValidationError: missing name/phone, no support selected, a missing
            frequency, or a pledges check constraint rejected the row.
        StorageError: any other Supabase failure.
    """
    full_name = request.full_name.strip()
    phone = request.phone_number.strip()
    if not full_name or not phone:
        raise ValidationError("Full name and phone number are required")

    try:
        fields = build_pledge_fields(
            missionaries_committed=request.missionaries_committed,
            frequency=request.frequency,
            amount=request.amount,
            special_support_amount=request.special_support_amount,
            special_support_frequency=request.special_support_frequency,
            in_kind_support=request.in_kind_support,
            in_kind_support_details=request.in_kind_support_details,
        )
    except PledgeValidationError as e:
        raise ValidationError(str(e)) from e

    request = request.model_copy(update={"full_name": full_name, "phone_number": phone})

    try:
        individual_id = _find_or_create_individual(client, request)
        response = (
            client.table("pledges")
            .insert(
                {
                    "individual_id": individual_id,
                    "date_of_commitment": request.date_of_commitment or date.today().isoformat(),
                    "submission_source": SUBMISSION_SOURCE,
                    **fields,
                }
            )
            .execute()
        )
    except STORAGE_ERRORS as e:
        message = storage_error_message(e)
        logger.error("public_pledge_failed", error=message)
        for constraint, hint in CONSTRAINT_HINTS.items():
            if constraint in message:
                raise ValidationError(f"Failed to create pledge. {hint}") from e
        raise StorageError(f"Failed to create pledge. {message}") from e

    pledge_id = response.data[0]["id"]
    logger.info("public_pledge_submitted", pledge_id=pledge_id, individual_id=individual_id)
    _notify_admins(client, full_name, pledge_id)
    return SubmittedPledge(pledge_id=pledge_id, individual_id=individual_id)


def delete_pledge(
    client: Client,
    store: TransactionStore,
    pledge_id: Any,
    actor: Optional[Actor] = None,
) -> int:
    """Unlink the pledge's transactions, then delete the pledge.

    Transactions are never deleted with their pledge. Returns how many were
    unlinked.
    """
    try:
        found = client.table("pledges").select("id").eq("id", pledge_id).limit(1).execute()
        if not found.data:
            raise NotFoundError(f"Pledge {pledge_id} not found")
        unlinked = store.clear_pledge_links(pledge_id)
        client.table("pledges").delete().eq("id", pledge_id).execute()
    except STORAGE_ERRORS as e:
        logger.error("pledge_delete_failed", pledge_id=pledge_id, error=storage_error_message(e))
        raise StorageError(storage_error_message(e)) from e

    logger.info(
        "pledge_deleted",
        pledge_id=pledge_id,
        transactions_unlinked=unlinked,
        actor_id=actor.user_id if actor else None,
    )
    return unlinked
