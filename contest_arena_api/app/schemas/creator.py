"""Pydantic models for creator-role applications."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CreatorApplicationRead(BaseModel):
    id: int
    email: str
    status: str = Field(..., examples=["pending"])
    created_at: datetime
    decided_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class CreatorDecision(BaseModel):
    status: str = Field(..., examples=["approved"])
