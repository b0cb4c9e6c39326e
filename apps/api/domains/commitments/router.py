"""Commitment review router."""

from fastapi import APIRouter, Depends

from apps.api.core.auth import Actor, require_admin
from apps.api.domains.commitments.schemas import CommitmentOut, ReviewRequest
from apps.api.domains.commitments.service import review_commitment

router = APIRouter(prefix="/commitments", tags=["commitments"])


@router.post("/{commitment_id}/review", response_model=CommitmentOut)
async def review(
    commitment_id: str,
    request: ReviewRequest,
    actor: Actor = Depends(require_admin),
):
    """Approve or reject a pending commitment."""
    return review_commitment(
        actor.client,
        commitment_id,
        request.status.value,
        notes=request.notes,
        actor=actor,
    )
