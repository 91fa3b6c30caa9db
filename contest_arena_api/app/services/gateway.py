"""
Payment gateway abstraction and its Stripe Checkout implementation.

The reconciler depends on ``PaymentGateway`` only: it needs to create
a hosted checkout session, retrieve a session by id and, for webhook
delivery, verify and parse an event.  ``StripeGateway`` implements
these with the official ``stripe`` SDK.  The SDK is synchronous, so
calls are pushed to the threadpool to keep the request's event loop
free while Stripe answers.

Provider failures are converted to ``GatewayError`` (HTTP 502) and are
never retried here; the client may retry the whole operation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from ..core.errors import GatewayError, InvalidInput


logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    """The parts of a gateway checkout session the service relies on."""

    id: str
    url: Optional[str] = None
    payment_status: Optional[str] = None
    payment_intent: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class GatewayEvent:
    type: str
    session: Optional[CheckoutSession] = None


class PaymentGateway(ABC):
    @abstractmethod
    async def create_checkout_session(
        self,
        amount_minor: int,
        currency: str,
        product_name: str,
        customer_email: Optional[str],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a hosted checkout session and return it (with its redirect URL)."""

    @abstractmethod
    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        """Fetch the current state of a checkout session."""

    @abstractmethod
    def parse_event(self, payload: bytes, signature: Optional[str]) -> GatewayEvent:
        """Verify a webhook delivery and return the event.

        Raises ``InvalidInput`` if the signature does not verify.
        """


def _as_dict(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    to_dict = getattr(obj, "to_dict", None)
    return dict(to_dict()) if callable(to_dict) else {}


def _session_from_stripe(obj: Any) -> CheckoutSession:
    data = _as_dict(obj)
    intent = data.get("payment_intent")
    if intent is not None and not isinstance(intent, str):
        # Expanded PaymentIntent object
        intent = _as_dict(intent).get("id")
    return CheckoutSession(
        id=data.get("id"),
        url=data.get("url"),
        payment_status=data.get("payment_status"),
        payment_intent=intent,
        amount_total=data.get("amount_total"),
        currency=data.get("currency"),
        customer_email=data.get("customer_email") or _as_dict(data.get("customer_details")).get("email"),
        metadata={str(k): str(v) for k, v in _as_dict(data.get("metadata")).items()},
    )


class StripeGateway(PaymentGateway):
    """``PaymentGateway`` backed by Stripe Checkout."""

    def __init__(self, secret_key: str, webhook_secret: str = "", client: Any = stripe) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._stripe = client

    async def create_checkout_session(
        self,
        amount_minor: int,
        currency: str,
        product_name: str,
        customer_email: Optional[str],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        params: Dict[str, Any] = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": amount_minor,
                        "product_data": {"name": product_name},
                    },
                    "quantity": 1,
                }
            ],
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "api_key": self._secret_key,
        }
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = await run_in_threadpool(self._stripe.checkout.Session.create, **params)
        except stripe.StripeError as exc:
            logger.error("Checkout session creation failed: %s", exc)
            raise GatewayError("Payment provider rejected the checkout request") from exc
        return _session_from_stripe(session)

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        try:
            session = await run_in_threadpool(
                self._stripe.checkout.Session.retrieve, session_id, api_key=self._secret_key
            )
        except stripe.InvalidRequestError as exc:
            raise InvalidInput(f"Unknown checkout session {session_id}", code="InvalidSession") from exc
        except stripe.StripeError as exc:
            logger.error("Checkout session %s retrieval failed: %s", session_id, exc)
            raise GatewayError("Payment provider unavailable") from exc
        return _session_from_stripe(session)

    def parse_event(self, payload: bytes, signature: Optional[str]) -> GatewayEvent:
        if not self._webhook_secret:
            raise InvalidInput("Webhook secret is not configured", code="WebhookDisabled")
        try:
            event = self._stripe.Webhook.construct_event(payload, signature or "", self._webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Webhook signature invalid: %s", exc)
            raise InvalidInput("Invalid webhook signature", code="InvalidSignature") from exc
        except ValueError as exc:
            raise InvalidInput("Malformed webhook payload", code="InvalidPayload") from exc
        event_type = event["type"]
        session = None
        if event_type.startswith("checkout.session."):
            session = _session_from_stripe(event["data"]["object"])
        return GatewayEvent(type=event_type, session=session)
