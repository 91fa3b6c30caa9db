"""
Payment endpoints for API v1.

``POST /create-checkout-session`` starts a hosted checkout and returns
the gateway's redirect URL.  After paying, the browser lands on the
web client's success page, which calls ``/payment-success`` with the
session id; that call may be repeated freely.  The gateway's webhook
(``POST /webhooks/stripe``) reaches the same reconciliation, so a
payment is recorded whichever confirmation arrives first.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request

from contest_arena_api.app.core.container import Container, get_container
from contest_arena_api.app.core.security import get_current_user
from contest_arena_api.app.schemas.payment import (
    CheckoutRequest,
    CheckoutSessionRead,
    PaymentConfirmation,
    PaymentRead,
)


router = APIRouter()


@router.post("/create-checkout-session", response_model=CheckoutSessionRead)
async def create_checkout_session(
    body: CheckoutRequest,
    current_user: dict = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> CheckoutSessionRead:
    """Create a checkout session for a contest entry fee.

    400 ``InvalidPrice`` unless ``price`` is a positive integer; 502 if
    the payment provider call fails.
    """
    return await container.payments.create_checkout_session(body, current_user)


@router.api_route("/payment-success", methods=["GET", "PATCH"], response_model=PaymentConfirmation)
async def payment_success(
    session_id: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> PaymentConfirmation:
    """Confirm a checkout session (idempotent).

    The first call records the payment and registers the participant;
    later calls for the same transaction return the same
    ``transaction_id`` and ``tracking_id`` with ``already_recorded``
    set.
    """
    return await container.payments.confirm_payment(session_id, current_user)


@router.get("/payments/me", response_model=List[PaymentRead])
async def my_payments(
    current_user: dict = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> List[PaymentRead]:
    """Entries paid by the caller, newest first."""
    return await container.payments.list_for_participant(current_user["sub"])


@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    container: Container = Depends(get_container),
) -> dict:
    """Receive gateway events; ``checkout.session.completed`` records the payment."""
    payload = await request.body()
    return await container.payments.handle_webhook(payload, stripe_signature)
