"""
Contest endpoints for API v1.

Creators (and admins) submit contests, which start ``pending``.  An
admin approves or rejects them through ``PATCH /contests/{id}``.  The
owning creator may edit or delete a pending contest; admins may delete
any contest.  Participants who paid the entry fee attach submissions,
and the creator declares the winner.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from contest_arena_api.app.core.container import Container, get_container
from contest_arena_api.app.core.security import get_current_user, require_admin, require_creator_or_admin
from contest_arena_api.app.schemas.contest import (
    ContestCreate,
    ContestRead,
    ContestUpdate,
    Participant,
    StatusUpdate,
    WinnerDeclaration,
)
from contest_arena_api.app.schemas.payment import PaymentRead, SubmissionCreate, SubmissionRead


router = APIRouter()


@router.get("/contests", response_model=List[ContestRead])
async def list_contests(
    status_filter: Optional[str] = Query(None, alias="status"),
    container: Container = Depends(get_container),
) -> List[ContestRead]:
    """List contests, newest first, optionally filtered by ``status``."""
    return await container.contests.list_contests(status=status_filter)


@router.get("/contests/approved", response_model=List[ContestRead])
async def list_approved_contests(container: Container = Depends(get_container)) -> List[ContestRead]:
    return await container.contests.list_contests(status="approved")


@router.get("/contests/mine", response_model=List[ContestRead])
async def list_my_contests(
    current_user: dict = Depends(require_creator_or_admin),
    container: Container = Depends(get_container),
) -> List[ContestRead]:
    """Contests submitted by the calling creator, in every status."""
    return await container.contests.list_contests(creator_email=current_user["sub"])


@router.get("/contests/{contest_id}", response_model=ContestRead)
async def get_contest(contest_id: int, container: Container = Depends(get_container)) -> ContestRead:
    return await container.contests.get(contest_id)


@router.post("/contests", response_model=ContestRead, status_code=status.HTTP_201_CREATED)
async def create_contest(
    contest: ContestCreate,
    current_user: dict = Depends(require_creator_or_admin),
    container: Container = Depends(get_container),
) -> ContestRead:
    """Submit a contest for review.  It is created with status ``pending``."""
    return await container.contests.create(contest, current_user)


@router.patch("/contests/{contest_id}", response_model=ContestRead)
async def change_contest_status(
    contest_id: int,
    body: StatusUpdate,
    current_user: dict = Depends(require_admin),
    container: Container = Depends(get_container),
) -> ContestRead:
    """Approve or reject a contest (admin only).

    ``status`` must be ``approved`` or ``rejected``; anything else is a
    400 ``InvalidStatus``.  Approval assigns a tracking id.
    """
    return await container.contests.transition(contest_id, body.status)


@router.patch("/contests/{contest_id}/edit", response_model=ContestRead)
async def edit_contest(
    contest_id: int,
    updates: ContestUpdate,
    current_user: dict = Depends(require_creator_or_admin),
    container: Container = Depends(get_container),
) -> ContestRead:
    """Edit a contest.  Only its creator, and only while it is pending."""
    return await container.contests.edit(contest_id, updates, current_user["sub"])


@router.delete("/contests/{contest_id}")
async def delete_contest(
    contest_id: int,
    current_user: dict = Depends(require_creator_or_admin),
    container: Container = Depends(get_container),
) -> dict:
    """Delete a contest: the creator while pending, or any admin."""
    await container.contests.delete(contest_id, current_user)
    return {"deleted": True, "id": contest_id}


@router.get("/contests/{contest_id}/participants", response_model=List[Participant])
async def list_participants(contest_id: int, container: Container = Depends(get_container)) -> List[Participant]:
    """Participants who paid the entry fee, one entry per email."""
    return await container.payments.list_participants(contest_id)


@router.get("/contests/{contest_id}/submissions", response_model=List[PaymentRead])
async def list_submissions(
    contest_id: int,
    current_user: dict = Depends(require_creator_or_admin),
    container: Container = Depends(get_container),
) -> List[PaymentRead]:
    """Paid entries with their submissions, for the contest creator or an admin.

    The entry ``id`` is the ``submission_id`` expected by
    ``PATCH /declare-winner``.
    """
    return await container.contests.list_submissions(contest_id, current_user)


@router.post(
    "/contests/{contest_id}/submit-task",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
async def submit_task(
    contest_id: int,
    body: SubmissionCreate,
    current_user: dict = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> SubmissionRead:
    """Attach a submission link.  Requires a paid entry for the contest."""
    return await container.payments.submit_task(contest_id, current_user["sub"], body.link)


@router.patch("/declare-winner", response_model=ContestRead)
async def declare_winner(
    body: WinnerDeclaration,
    current_user: dict = Depends(require_creator_or_admin),
    container: Container = Depends(get_container),
) -> ContestRead:
    """Declare the winning submission of a contest."""
    return await container.contests.declare_winner(
        body.contest_id,
        body.submission_id,
        body.winner_email,
        current_user,
    )
