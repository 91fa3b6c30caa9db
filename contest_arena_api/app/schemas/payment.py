"""
Pydantic models for payment data.

A payment is recorded once per gateway transaction when a checkout
session is confirmed.  Submissions made by the participant for the
contest are kept in order on the payment.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    """Body of ``POST /create-checkout-session``.

    ``price`` is deliberately untyped here: the service validates it so
    that a bad price is reported as ``InvalidPrice``.
    """

    price: Any = Field(None, examples=[50])
    contest_id: int = Field(..., examples=[1])
    email: Optional[str] = Field(None, examples=["player@example.com"])
    display_name: Optional[str] = Field(None, examples=["Ada Lovelace"])


class CheckoutSessionRead(BaseModel):
    url: str
    session_id: str


class PaymentConfirmation(BaseModel):
    """Result of confirming a checkout session.

    ``already_recorded`` is True when the transaction had been recorded
    by an earlier call (redirect retry, polling or webhook).
    """

    transaction_id: str
    tracking_id: str
    contest_id: int
    already_recorded: bool = False


class SubmissionCreate(BaseModel):
    link: Optional[str] = Field(None, examples=["https://drive.example.com/entry.svg"])


class SubmissionRead(BaseModel):
    id: int
    link: str
    submitted_at: datetime


class PaymentRead(BaseModel):
    """Schema for reading a payment."""

    id: int
    transaction_id: str
    tracking_id: str
    contest_id: int
    email: str
    amount: float
    currency: Optional[str] = None
    payment_status: str = Field(..., examples=["paid"])
    created_at: datetime
    is_winner: bool = False
    contest_winner_declared: bool = False
    submissions: List[SubmissionRead] = []

    model_config = {
        "from_attributes": True,
    }
