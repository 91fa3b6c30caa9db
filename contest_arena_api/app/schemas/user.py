"""
Pydantic models for user data.

Users are created on first sign-in by the web client, identified by
email.  The role is never accepted from the registration payload; it
changes only through ``PATCH /users/{id}/role`` or by an approved
creator application.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..core.roles import Role


class UserBase(BaseModel):
    email: str = Field(..., min_length=3, examples=["player@example.com"])
    name: Optional[str] = Field(None, examples=["Ada Lovelace"])
    photo_url: Optional[str] = Field(None, examples=["https://example.com/ada.png"])

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("must be an email address")
        return value


class UserCreate(UserBase):
    """Schema for registering a user on first sign-in."""
    pass


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    role: Role
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class RegistrationResult(BaseModel):
    """Outcome of ``POST /users``; ``created`` is False for a known email."""

    message: str
    created: bool
    user: UserRead


class RoleRead(BaseModel):
    email: str
    role: Role


class RoleUpdate(BaseModel):
    # Plain string so an unknown role is reported as InvalidRole, not a schema error.
    role: str = Field(..., examples=["creator"])
