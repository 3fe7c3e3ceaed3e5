"""Pydantic v2 request/response schemas for catalog endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TierCreate(BaseModel):
    """A tier offered by a service. ``price_cents`` of 0 means free."""

    name: str = Field(..., min_length=1, max_length=255)
    price_cents: int = Field(0, ge=0)
    features: list[str] = Field(default_factory=list)


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    tiers: list[TierCreate] = Field(default_factory=list)


class ServiceUpdate(BaseModel):
    """Partial update. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    tags: list[str] | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class TierResponse(BaseModel):
    id: uuid.UUID
    service_id: uuid.UUID
    name: str
    price_cents: int
    features: list[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VersionSummary(BaseModel):
    id: uuid.UUID
    version: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ServiceResponse(BaseModel):
    """A marketplace listing card."""

    id: uuid.UUID
    name: str
    description: str | None = None
    owner_ids: list[uuid.UUID]
    tags: list[TagResponse]
    subscription_tiers: list[TierResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ServiceDetailResponse(ServiceResponse):
    """Full service page, with subscription state for signed-in users."""

    versions: list[VersionSummary]
    is_subscribed: bool = False
    subscribed_tier_id: uuid.UUID | None = None


class ServiceListResponse(BaseModel):
    """A page of marketplace results."""

    items: list[ServiceResponse]
    next_cursor: uuid.UUID | None = None
