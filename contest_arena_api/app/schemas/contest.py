"""
Pydantic models for contest data.

``ContestBase`` holds the fields a creator supplies; ``ContestCreate``
is the request body for submitting a contest, ``ContestUpdate`` the
partial body of ``PATCH /contests/{id}/edit`` and ``ContestRead`` the
full record including lifecycle and payment fields maintained by the
server.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ContestBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Logo Design Sprint"])
    image: Optional[str] = Field(None, examples=["https://example.com/contest.png"])
    description: Optional[str] = Field(None, examples=["Design a logo for a coffee brand"])
    contest_type: Optional[str] = Field(None, examples=["design"])
    price: int = Field(..., gt=0, examples=[50], description="Entry fee in whole currency units")
    prize_money: int = Field(0, ge=0, examples=[500])
    task_instruction: Optional[str] = Field(None, examples=["Upload a link to your SVG"])
    deadline: Optional[datetime] = Field(None, examples=["2026-12-01T00:00:00Z"])


class ContestCreate(ContestBase):
    """Schema for submitting a contest for review."""
    pass


class ContestUpdate(BaseModel):
    """Schema for editing a pending contest.

    All fields are optional; only provided fields are updated.
    """

    name: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    description: Optional[str] = None
    contest_type: Optional[str] = None
    price: Optional[int] = Field(None, gt=0)
    prize_money: Optional[int] = Field(None, ge=0)
    task_instruction: Optional[str] = None
    deadline: Optional[datetime] = None

    @field_validator("name", "price", "prize_money")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to keep it; these columns cannot be cleared.
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ContestRead(ContestBase):
    """Schema for reading a contest from the API."""

    id: int
    creator_email: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    tracking_id: Optional[str] = None
    payment_status: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_tracking_id: Optional[str] = None
    participants_count: int = 0
    winner_email: Optional[str] = None
    winner_declared_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class StatusUpdate(BaseModel):
    """Body of the admin approve/reject transition."""

    status: str = Field(..., examples=["approved"])


class WinnerDeclaration(BaseModel):
    contest_id: int = Field(..., examples=[1])
    submission_id: int = Field(..., examples=[7], description="ID of the payment that holds the submission")
    winner_email: Optional[str] = Field(None, examples=["player@example.com"])


class Participant(BaseModel):
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    joined_at: datetime
