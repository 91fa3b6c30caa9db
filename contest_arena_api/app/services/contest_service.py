"""
Business logic for the contest lifecycle.

A contest starts ``pending``; an admin moves it to ``approved`` or
``rejected``, both terminal.  Approval assigns a tracking id.  While a
contest is pending its creator may edit or delete it; admins may
delete a contest in any state.  Winner declaration is recorded on the
participant payments and on the contest itself.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.errors import Forbidden, InvalidInput, NotFound
from ..core.roles import ADMIN_ONLY, has_capability
from ..core.tracking import generate_tracking_id
from ..repositories.contest_repository import ContestRepository
from ..repositories.payment_repository import PaymentRepository
from ..schemas.contest import ContestCreate, ContestRead, ContestUpdate


logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
TERMINAL_STATUSES = frozenset({APPROVED, REJECTED})


class ContestService:
    """Contest state machine and creator-scoped edit/delete rules."""

    def __init__(self, contests: ContestRepository, payments: PaymentRepository) -> None:
        self._contests = contests
        self._payments = payments

    def _require(self, contest_id: int) -> ContestRead:
        contest = self._contests.get(contest_id)
        if contest is None:
            raise NotFound(f"Contest {contest_id} not found", code="ContestNotFound")
        return contest

    async def create(self, data: ContestCreate, current_user: Dict[str, Any]) -> ContestRead:
        creator_email = current_user["sub"]
        contest_id = self._contests.insert(creator_email, data)
        logger.info("Contest %s '%s' submitted by %s", contest_id, data.name, creator_email)
        return self._contests.get(contest_id)

    async def get(self, contest_id: int) -> ContestRead:
        return self._require(contest_id)

    async def list_contests(self, status: Optional[str] = None, creator_email: Optional[str] = None) -> List[ContestRead]:
        return self._contests.list_contests(status=status, creator_email=creator_email)

    async def transition(self, contest_id: int, target_status: str) -> ContestRead:
        """Approve or reject a contest.

        Re-applying the status a contest already has overwrites its
        decision timestamp (and, for approvals, issues a new tracking
        id).  Moving a decided contest to the other terminal status is
        refused.
        """
        if target_status not in TERMINAL_STATUSES:
            raise InvalidInput("Invalid status", code="InvalidStatus")
        contest = self._require(contest_id)
        if contest.status in TERMINAL_STATUSES and contest.status != target_status:
            raise InvalidInput(
                f"Contest {contest_id} is already {contest.status}",
                code="InvalidTransition",
            )
        if target_status == APPROVED:
            tracking_id = generate_tracking_id()
            self._contests.mark_approved(contest_id, tracking_id)
            logger.info("Contest %s approved, tracking id %s", contest_id, tracking_id)
        else:
            self._contests.mark_rejected(contest_id)
            logger.info("Contest %s rejected", contest_id)
        return self._contests.get(contest_id)

    async def edit(self, contest_id: int, updates: ContestUpdate, requester_email: str) -> ContestRead:
        contest = self._require(contest_id)
        if contest.creator_email != requester_email or contest.status != PENDING:
            raise Forbidden("Only the creator may edit a contest, and only while it is pending")
        changes = updates.model_dump(exclude_unset=True)
        self._contests.update_fields(contest_id, changes)
        logger.info("Contest %s edited by %s: %s", contest_id, requester_email, sorted(changes))
        return self._contests.get(contest_id)

    async def delete(self, contest_id: int, current_user: Dict[str, Any]) -> None:
        contest = self._require(contest_id)
        is_admin = has_capability(current_user.get("role"), ADMIN_ONLY)
        is_owner_pending = contest.creator_email == current_user["sub"] and contest.status == PENDING
        if not (is_admin or is_owner_pending):
            raise Forbidden("Only admins, or the creator of a pending contest, may delete it")
        self._contests.delete(contest_id)
        logger.info("Contest %s (%s) deleted by %s", contest_id, contest.status, current_user["sub"])

    def _require_owner_or_admin(self, contest: ContestRead, current_user: Dict[str, Any]) -> None:
        if has_capability(current_user.get("role"), ADMIN_ONLY):
            return
        if contest.creator_email != current_user["sub"]:
            raise Forbidden("Only the contest creator or an admin may do this")

    async def declare_winner(
        self,
        contest_id: int,
        submission_id: int,
        winner_email: Optional[str],
        current_user: Dict[str, Any],
    ) -> ContestRead:
        """Mark the payment ``submission_id`` as the contest winner.

        Calling again simply re-applies the flags; the contest's
        ``winner_email`` follows the latest call.
        """
        contest = self._require(contest_id)
        self._require_owner_or_admin(contest, current_user)
        payment = self._payments.get(submission_id)
        if payment is None or payment.contest_id != contest_id:
            raise NotFound(f"Submission {submission_id} not found in contest {contest_id}", code="SubmissionNotFound")
        if winner_email and winner_email.strip().lower() != payment.email:
            raise InvalidInput("Winner email does not match the submission", code="WinnerMismatch")
        self._payments.mark_winner(payment.id, contest_id)
        self._contests.mark_winner(contest_id, payment.email)
        logger.info("Contest %s winner declared: %s by %s", contest_id, payment.email, current_user["sub"])
        return self._contests.get(contest_id)

    async def list_submissions(self, contest_id: int, current_user: Dict[str, Any]):
        """Paid entries of a contest with their submissions, for its creator or an admin."""
        contest = self._require(contest_id)
        self._require_owner_or_admin(contest, current_user)
        return self._payments.list_paid_for_contest(contest_id)
