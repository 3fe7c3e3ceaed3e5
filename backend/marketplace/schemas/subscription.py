"""Pydantic v2 request/response schemas for subscription endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from marketplace.models.subscription import SubscriptionStatus
from marketplace.schemas.billing import PaymentMethodResponse
from marketplace.schemas.service import TagResponse

# --- Request schemas ---


class SubscribeRequest(BaseModel):
    """Subscribe to a tier. Free tiers may omit the payment method."""

    service_id: uuid.UUID
    tier_id: uuid.UUID
    payment_method_id: uuid.UUID | None = None
    auto_renewal: bool = False


class TierActionRequest(BaseModel):
    """Identify the caller's subscription by its tier."""

    subscription_tier_id: uuid.UUID


class SwitchTierRequest(BaseModel):
    old_tier_id: uuid.UUID
    new_tier_id: uuid.UUID


class UpdatePaymentMethodRequest(BaseModel):
    subscription_tier_id: uuid.UUID
    payment_method_id: uuid.UUID
    auto_renewal: bool | None = None


# --- Response schemas ---


class ConsumerResponse(BaseModel):
    """A subscription row."""

    id: uuid.UUID
    user_id: uuid.UUID
    subscription_tier_id: uuid.UUID
    payment_method_id: uuid.UUID | None = None
    subscription_status: SubscriptionStatus
    renewing_subscription: bool
    subscription_start_date: datetime
    last_renewed: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionActionResponse(BaseModel):
    success: bool = True
    message: str
    subscription: ConsumerResponse


class SubscribeResponse(SubscriptionActionResponse):
    """``success`` is False when the card charge did not go through."""

    payment_status: str | None = None


class ServiceSummary(BaseModel):
    id: uuid.UUID
    name: str
    tags: list[TagResponse]

    model_config = ConfigDict(from_attributes=True)


class TierWithServiceResponse(BaseModel):
    id: uuid.UUID
    name: str
    price_cents: int
    features: list[str]
    service: ServiceSummary

    model_config = ConfigDict(from_attributes=True)


class SubscriptionDetailResponse(ConsumerResponse):
    subscription_tier: TierWithServiceResponse
    payment_method: PaymentMethodResponse | None = None


class SubscriptionListResponse(BaseModel):
    success: bool = True
    subscriptions: list[SubscriptionDetailResponse]


class SubscriptionStatusResponse(BaseModel):
    is_subscribed: bool
    subscription_tier_id: uuid.UUID | None = None
