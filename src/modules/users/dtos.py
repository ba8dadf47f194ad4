"""User DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``SignupDTO``: input for user registration.
- ``UserOutputDTO``: output without credentials.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

if TYPE_CHECKING:
    from modules.users.models import User

PASSWORD_MIN_LENGTH = 6


class SignupDTO(BaseModel):
    """Immutable DTO for signup requests.

    Validates:
    - ``name`` is non-empty.
    - ``email`` is a well-formed address (Pydantic ``EmailStr``).
    - ``password`` has at least ``PASSWORD_MIN_LENGTH`` characters.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    email: EmailStr
    password: str
    company: str = ""

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters."
            )
        return v


class UserOutputDTO(BaseModel):
    """Immutable DTO for user API responses."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str
    company: str
    created: datetime
    products: List[int]

    @classmethod
    def from_entity(cls, user: User) -> UserOutputDTO:
        """Build an output DTO from a User model instance."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            company=user.company,
            created=user.created,
            products=user.owned_product_ids,
        )
