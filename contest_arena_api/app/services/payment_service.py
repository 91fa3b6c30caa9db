"""
Business logic for payments: the payment reconciler.

Participants pay an entry fee through a hosted checkout session.  The
gateway later confirms the payment, possibly many times: the browser
redirect can be retried, the client polls ``/payment-success`` and the
gateway's webhook may be delivered more than once.  ``confirm_session``
therefore has to record each gateway transaction exactly once.

The guarantee comes from storage, not from a lookup: the payments
table is UNIQUE on ``transaction_id`` and the row is written with an
insert-if-absent.  The caller whose insert lands performs the fan-out
to the contest (participant counter, payment stamp); every other
caller, including one that lost a race, gets the recorded row back
untouched.

There is no transaction spanning the payment row and the contest
update.  If the contest update fails after the insert, the request
fails with a 500 while the payment stays recorded; a repeated
confirmation returns the payment and does not redo the fan-out.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.errors import Forbidden, InvalidInput, NotFound
from ..core.tracking import generate_tracking_id
from ..repositories.contest_repository import ContestRepository
from ..repositories.payment_repository import PaymentRepository
from ..repositories.user_repository import UserRepository
from ..schemas.contest import Participant
from ..schemas.payment import (
    CheckoutRequest,
    CheckoutSessionRead,
    PaymentConfirmation,
    PaymentRead,
    SubmissionRead,
)
from .gateway import CheckoutSession, PaymentGateway


logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def validate_price(price: Any) -> int:
    """Return ``price`` as a positive int or raise ``InvalidPrice``.

    Integral floats (``50.0``) are accepted; booleans, strings and
    fractional amounts are not.
    """
    if isinstance(price, bool):
        raise InvalidInput("Price must be a positive integer", code="InvalidPrice")
    if isinstance(price, float) and price.is_integer():
        price = int(price)
    if not isinstance(price, int) or price <= 0:
        raise InvalidInput("Price must be a positive integer", code="InvalidPrice")
    return price


class PaymentService:
    """Checkout, idempotent confirmation, submissions and participants."""

    def __init__(
        self,
        payments: PaymentRepository,
        contests: ContestRepository,
        users: UserRepository,
        gateway: PaymentGateway,
        site_domain: str,
        currency: str = "usd",
    ) -> None:
        self._payments = payments
        self._contests = contests
        self._users = users
        self._gateway = gateway
        self._site_domain = site_domain.rstrip("/")
        self._currency = currency

    async def create_checkout_session(self, data: CheckoutRequest, current_user: Dict[str, Any]) -> CheckoutSessionRead:
        """Start a hosted checkout for a contest entry fee.

        ``contestId``, ``email`` and ``displayName`` travel as session
        metadata and come back on confirmation.  The email defaults to
        the verified subject.  For a known contest the price must be its
        entry fee.
        """
        price = validate_price(data.price)
        email = (data.email or current_user["sub"]).strip().lower()
        contest = self._contests.get(data.contest_id)
        if contest is not None and price != contest.price:
            raise InvalidInput(f"Entry fee for contest {contest.id} is {contest.price}", code="InvalidPrice")
        product_name = contest.name if contest else f"Contest {data.contest_id}"
        metadata = {
            "contestId": str(data.contest_id),
            "email": email,
            "displayName": data.display_name or "",
        }
        session = await self._gateway.create_checkout_session(
            amount_minor=price * 100,
            currency=self._currency,
            product_name=product_name,
            customer_email=email,
            metadata=metadata,
            success_url=f"{self._site_domain}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self._site_domain}/payment-cancelled",
        )
        logger.info("Checkout session %s created for %s, contest %s", session.id, email, data.contest_id)
        return CheckoutSessionRead(url=session.url, session_id=session.id)

    async def confirm_payment(self, session_id: Optional[str], current_user: Dict[str, Any]) -> PaymentConfirmation:
        """Confirm a checkout session on behalf of the signed-in participant."""
        if not session_id:
            raise InvalidInput("session_id is required", code="MissingSessionId")
        session = await self._gateway.retrieve_session(session_id)
        return self.reconcile(session, fallback_email=current_user.get("sub"))

    async def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Apply a gateway webhook delivery; unrelated events are acknowledged."""
        event = self._gateway.parse_event(payload, signature)
        if event.type != CHECKOUT_COMPLETED or event.session is None:
            return {"received": True, "handled": False}
        confirmation = self.reconcile(event.session)
        return {"received": True, "handled": True, "transaction_id": confirmation.transaction_id}

    def reconcile(self, session: CheckoutSession, fallback_email: Optional[str] = None) -> PaymentConfirmation:
        """Record a paid session exactly once and fan it out to the contest."""
        if session.payment_status != "paid":
            raise InvalidInput("Payment not completed", code="PaymentNotCompleted")
        transaction_id = session.payment_intent
        if not transaction_id:
            raise InvalidInput("Session has no payment transaction", code="PaymentNotCompleted")

        existing = self._payments.get_by_transaction(transaction_id)
        if existing is not None:
            logger.info("Transaction %s already recorded as %s", transaction_id, existing.tracking_id)
            return self._confirmation(existing, already_recorded=True)

        contest_id = self._parse_contest_id(session.metadata.get("contestId"))
        email = (session.metadata.get("email") or fallback_email or "").strip().lower()
        if contest_id is None or not email:
            raise InvalidInput("Missing contest information", code="MissingContestInfo")
        if self._contests.get(contest_id) is None:
            raise NotFound(f"Contest {contest_id} not found", code="ContestNotFound")

        tracking_id = generate_tracking_id()
        amount = (session.amount_total or 0) / 100
        inserted = self._payments.insert_if_absent(
            transaction_id=transaction_id,
            tracking_id=tracking_id,
            contest_id=contest_id,
            email=email,
            amount=amount,
            currency=session.currency,
            session_id=session.id,
        )
        recorded = self._payments.get_by_transaction(transaction_id)
        if not inserted:
            # Another confirmation of the same transaction won the insert.
            logger.info("Transaction %s recorded concurrently; returning existing row", transaction_id)
            return self._confirmation(recorded, already_recorded=True)

        logger.info("Recorded payment %s (%s) for %s in contest %s", transaction_id, tracking_id, email, contest_id)
        if not self._contests.record_payment(contest_id, transaction_id, tracking_id):
            logger.error("Contest %s vanished before payment %s was linked", contest_id, transaction_id)
        return self._confirmation(recorded, already_recorded=False)

    @staticmethod
    def _parse_contest_id(value: Optional[str]) -> Optional[int]:
        try:
            return int(value) if value else None
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _confirmation(payment: PaymentRead, already_recorded: bool) -> PaymentConfirmation:
        return PaymentConfirmation(
            transaction_id=payment.transaction_id,
            tracking_id=payment.tracking_id,
            contest_id=payment.contest_id,
            already_recorded=already_recorded,
        )

    async def submit_task(self, contest_id: int, requester_email: str, link: Optional[str]) -> SubmissionRead:
        if not link or not link.strip():
            raise InvalidInput("Submission link is required", code="MissingLink")
        payment = self._payments.latest_paid(requester_email, contest_id)
        if payment is None:
            raise Forbidden("You are not registered for this contest", code="NotRegistered")
        submission = self._payments.add_submission(payment.id, link.strip())
        logger.info("Submission %s for contest %s by %s", submission.id, contest_id, requester_email)
        return submission

    async def list_participants(self, contest_id: int) -> List[Participant]:
        """Paid participants of a contest, one entry per email, enriched from users."""
        first_payment: Dict[str, PaymentRead] = {}
        for payment in self._payments.list_paid_for_contest(contest_id):
            first_payment.setdefault(payment.email, payment)
        profiles = {user.email: user for user in self._users.get_many_by_email(list(first_payment))}
        participants = []
        for email, payment in first_payment.items():
            profile = profiles.get(email)
            participants.append(
                Participant(
                    email=email,
                    name=profile.name if profile else None,
                    photo_url=profile.photo_url if profile else None,
                    joined_at=payment.created_at,
                )
            )
        return participants

    async def list_for_participant(self, email: str) -> List[PaymentRead]:
        return self._payments.list_for_email(email)
