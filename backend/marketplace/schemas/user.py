"""Pydantic v2 request/response schemas for user profile endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class UserUpdate(BaseModel):
    """Partial profile update. Email and credentials live with the auth provider."""

    name: str | None = Field(None, min_length=1, max_length=255)
    bio: str | None = None
    image: HttpUrl | None = None


class UserSummary(BaseModel):
    id: uuid.UUID
    name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PublicUserResponse(BaseModel):
    """Profile visible to other users."""

    id: uuid.UUID
    name: str | None = None
    bio: str | None = None
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(PublicUserResponse):
    """The caller's own profile."""

    email: str | None = None
    is_active: bool
    created_at: datetime
