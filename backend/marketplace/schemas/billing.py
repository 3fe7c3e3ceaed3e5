"""Pydantic v2 request/response schemas for payment method and billing endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from marketplace.schemas.user import UserSummary

# --- Request schemas ---


class SavePaymentMethodRequest(BaseModel):
    """A card confirmed through a SetupIntent, plus the billing address."""

    payment_method_id: str = Field(..., min_length=1)  # Stripe pm_xxx
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = Field(None, min_length=2, max_length=2)

    def address(self) -> dict[str, str | None]:
        return self.model_dump(exclude={"payment_method_id"})


# --- Response schemas ---


class SetupIntentResponse(BaseModel):
    client_secret: str


class PaymentMethodResponse(BaseModel):
    id: uuid.UUID
    card_brand: str | None = None
    last4: str | None = None
    exp_month: int | None = None
    exp_year: int | None = None
    cardholder_name: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BillingReceiptResponse(BaseModel):
    id: uuid.UUID
    amount_cents: int
    description: str
    date: datetime
    status: str
    sender: UserSummary | None = None
    recipient: UserSummary | None = None
    subscription_tier_id: uuid.UUID | None = None
    payment_method_id: uuid.UUID | None = None
    stripe_payment_intent_id: str | None = None

    model_config = ConfigDict(from_attributes=True)
