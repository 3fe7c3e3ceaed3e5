"""Subscription API routes: subscribe, cancel, resume, switch, and billing history."""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_current_active_user, get_db
from marketplace.models.user import User
from marketplace.schemas.billing import BillingReceiptResponse
from marketplace.schemas.common import MessageResponse
from marketplace.schemas.subscription import (
    ConsumerResponse,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionActionResponse,
    SubscriptionDetailResponse,
    SubscriptionListResponse,
    SubscriptionStatusResponse,
    SwitchTierRequest,
    TierActionRequest,
    UpdatePaymentMethodRequest,
)
from marketplace.services import subscription_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


@router.get("", response_model=SubscriptionListResponse)
async def get_user_subscriptions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscriptionListResponse:
    """List the caller's subscriptions with tier, service, and card details."""
    consumers = await subscription_service.get_user_subscriptions(db, current_user)
    return SubscriptionListResponse(
        subscriptions=[SubscriptionDetailResponse.model_validate(c) for c in consumers]
    )


@router.get("/billing-history", response_model=list[BillingReceiptResponse])
async def get_billing_history(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[BillingReceiptResponse]:
    receipts = await subscription_service.get_billing_history(db, current_user)
    return [BillingReceiptResponse.model_validate(r) for r in receipts]


@router.get("/status/{service_id}", response_model=SubscriptionStatusResponse)
async def is_user_subscribed_to_service(
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscriptionStatusResponse:
    is_subscribed, tier_id = await subscription_service.is_user_subscribed_to_service(
        db, current_user, service_id
    )
    return SubscriptionStatusResponse(is_subscribed=is_subscribed, subscription_tier_id=tier_id)


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe_to_tier(
    body: SubscribeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscribeResponse:
    """Subscribe to a tier, charging the card for paid tiers.

    A declined charge is not an error: the subscription is stored as
    PAYMENT_FAILED and ``success`` is False so the client can retry.
    """
    result = await subscription_service.subscribe_to_tier(
        db,
        current_user,
        service_id=body.service_id,
        tier_id=body.tier_id,
        payment_method_id=body.payment_method_id,
        auto_renewal=body.auto_renewal,
    )

    return SubscribeResponse(
        success=result.success,
        message=result.message,
        subscription=ConsumerResponse.model_validate(result.consumer),
        payment_status=result.charge.outcome.value if result.charge else None,
    )


@router.post("/unsubscribe", response_model=SubscriptionActionResponse)
async def unsubscribe_from_tier(
    body: TierActionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscriptionActionResponse:
    consumer = await subscription_service.unsubscribe_from_tier(
        db, current_user, body.subscription_tier_id
    )
    return SubscriptionActionResponse(
        message="Subscription cancelled.",
        subscription=ConsumerResponse.model_validate(consumer),
    )


@router.post("/resume", response_model=SubscriptionActionResponse)
async def resume_subscription(
    body: TierActionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscriptionActionResponse:
    consumer = await subscription_service.resume_subscription(
        db, current_user, body.subscription_tier_id
    )
    return SubscriptionActionResponse(
        message="Subscription resumed successfully.",
        subscription=ConsumerResponse.model_validate(consumer),
    )


@router.post("/switch-tier", response_model=SubscriptionActionResponse)
async def switch_subscription_tier(
    body: SwitchTierRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscriptionActionResponse:
    consumer = await subscription_service.switch_subscription_tier(
        db, current_user, body.old_tier_id, body.new_tier_id
    )
    return SubscriptionActionResponse(
        message="Subscription tier switched successfully.",
        subscription=ConsumerResponse.model_validate(consumer),
    )


@router.post("/payment-method", response_model=SubscriptionActionResponse)
async def update_subscription_payment_method(
    body: UpdatePaymentMethodRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> SubscriptionActionResponse:
    consumer = await subscription_service.update_subscription_payment_method(
        db,
        current_user,
        subscription_tier_id=body.subscription_tier_id,
        payment_method_id=body.payment_method_id,
        auto_renewal=body.auto_renewal,
    )
    return SubscriptionActionResponse(
        message="Payment method updated.",
        subscription=ConsumerResponse.model_validate(consumer),
    )


@router.delete("/{subscription_tier_id}", response_model=MessageResponse)
async def delete_subscription(
    subscription_tier_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Delete a cancelled, expired, or failed subscription. Active ones are refused."""
    await subscription_service.delete_subscription(db, current_user, subscription_tier_id)
    return MessageResponse(message="Subscription deleted")
