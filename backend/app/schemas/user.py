"""
Places Backend: User Request/Response Schemas
===============================================

What:  Pydantic models for the users API (listing and sign-up).
Why:   UserResponse never carries the password hash.
"""

import uuid
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserSignup(BaseModel):
    """Body of POST /api/users/signup."""
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=6, max_length=128)
    image: str = Field(
        default="https://www.gravatar.com/avatar/?d=mp",
        max_length=1024,
        description="Avatar URL",
    )

    model_config = {"str_strip_whitespace": True}

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    image: str
    places: List[str] = Field(default_factory=list, description="Ids of the user's places")

    model_config = {"from_attributes": True}

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        if isinstance(v, uuid.UUID):
            return str(v)
        return v


class UserEnvelope(BaseModel):
    user: UserResponse


class UserListEnvelope(BaseModel):
    users: List[UserResponse]
