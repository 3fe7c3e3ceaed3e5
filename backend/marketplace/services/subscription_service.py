"""Subscription service: the consumer side of the tier lifecycle.

Status transitions::

    (none)               -> ACTIVE | PAYMENT_FAILED   subscribe_to_tier
    ACTIVE (paid)        -> PENDING_CANCELLATION      unsubscribe_from_tier
    ACTIVE (free)        -> CANCELLED                 unsubscribe_from_tier
    PENDING_CANCELLATION -> ACTIVE                    resume_subscription
    PENDING_CANCELLATION -> CANCELLED                 check_subscription_cancellations
    ACTIVE (paid)        -> ACTIVE | PAYMENT_FAILED   check_subscription_renewals (auto-renew)
    ACTIVE (paid)        -> EXPIRED                   check_subscription_renewals (no auto-renew)
    any but ACTIVE       -> (deleted)                 delete_subscription

Every operation takes the caller explicitly and raises
:class:`~marketplace.errors.MarketplaceError` on failure.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.billing.payments import ChargeOutcome, ChargeResult, charge_saved_card
from marketplace.config import settings
from marketplace.database import utcnow
from marketplace.errors import MarketplaceError, bad_request, not_found
from marketplace.models.billing import BillingReceipt, BillingStatus, PaymentMethod
from marketplace.models.service import Service
from marketplace.models.subscription import ServiceConsumer, SubscriptionStatus, SubscriptionTier
from marketplace.models.user import User
from marketplace.services.payment_method_service import (
    ensure_stripe_customer,
    get_owned_payment_method,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscribeResult:
    """The consumer row after subscribing, and the charge if one was made."""

    consumer: ServiceConsumer
    charge: ChargeResult | None

    @property
    def success(self) -> bool:
        return self.consumer.subscription_status == SubscriptionStatus.ACTIVE

    @property
    def message(self) -> str:
        if self.charge is not None and not self.charge.succeeded:
            return self.charge.message
        return "Successfully subscribed to service."


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_consumer_for_tier(
    db: AsyncSession, user_id: uuid.UUID, subscription_tier_id: uuid.UUID
) -> ServiceConsumer | None:
    """Find the user's subscription row for a specific tier."""
    result = await db.execute(
        select(ServiceConsumer)
        .where(
            ServiceConsumer.user_id == user_id,
            ServiceConsumer.subscription_tier_id == subscription_tier_id,
        )
        .order_by(ServiceConsumer.created_at)
        .limit(1)
    )
    return result.scalars().first()


async def get_consumer_for_service(
    db: AsyncSession, user_id: uuid.UUID, service_id: uuid.UUID
) -> ServiceConsumer | None:
    """Find the user's subscription row for any tier of a service."""
    result = await db.execute(
        select(ServiceConsumer)
        .join(SubscriptionTier, ServiceConsumer.subscription_tier_id == SubscriptionTier.id)
        .where(
            ServiceConsumer.user_id == user_id,
            SubscriptionTier.service_id == service_id,
        )
        .order_by(ServiceConsumer.created_at)
        .limit(1)
    )
    return result.scalars().first()


async def _require_consumer_for_tier(
    db: AsyncSession, user: User, subscription_tier_id: uuid.UUID
) -> ServiceConsumer:
    consumer = await get_consumer_for_tier(db, user.id, subscription_tier_id)
    if consumer is None:
        raise not_found("Subscription not found.")
    return consumer


def _service_owner_id(service: Service) -> uuid.UUID | None:
    return service.owners[0].user_id if service.owners else None


# ---------------------------------------------------------------------------
# Charging
# ---------------------------------------------------------------------------


async def _record_charge_receipts(
    db: AsyncSession,
    payer: User,
    tier: SubscriptionTier,
    payment_method: PaymentMethod,
    charge: ChargeResult,
) -> None:
    """Write the payer's receipt, plus the owner's RECEIVED receipt on success."""
    owner_id = _service_owner_id(tier.service)
    description = f"Subscription to {tier.name}"

    db.add(
        BillingReceipt(
            amount_cents=tier.price_cents,
            description=description,
            from_id=owner_id,
            to_id=payer.id,
            status=charge.receipt_status.value,
            subscription_tier_id=tier.id,
            payment_method_id=payment_method.id,
            stripe_payment_intent_id=charge.payment_intent_id,
        )
    )
    if charge.succeeded:
        db.add(
            BillingReceipt(
                amount_cents=tier.price_cents,
                description=description,
                from_id=payer.id,
                to_id=owner_id,
                status=BillingStatus.RECEIVED.value,
                subscription_tier_id=tier.id,
                payment_method_id=payment_method.id,
                stripe_payment_intent_id=charge.payment_intent_id,
            )
        )
    await db.flush()


async def _charge_for_tier(
    db: AsyncSession,
    payer: User,
    tier: SubscriptionTier,
    payment_method: PaymentMethod,
    idempotency_key: str | None = None,
) -> ChargeResult:
    """Charge one billing period of ``tier`` to a saved card and record receipts."""
    customer_id = await ensure_stripe_customer(db, payer)
    charge = await charge_saved_card(
        amount_cents=tier.price_cents,
        customer_id=customer_id,
        stripe_payment_method_id=payment_method.stripe_payment_id,
        description=f"Subscription to {tier.service.name}, for {tier.name}",
        metadata={"user_id": str(payer.id), "subscription_tier_id": str(tier.id)},
        idempotency_key=idempotency_key,
    )
    await _record_charge_receipts(db, payer, tier, payment_method, charge)
    return charge


# ---------------------------------------------------------------------------
# Lifecycle operations
# ---------------------------------------------------------------------------


async def subscribe_to_tier(
    db: AsyncSession,
    user: User,
    service_id: uuid.UUID,
    tier_id: uuid.UUID,
    payment_method_id: uuid.UUID | None,
    auto_renewal: bool = False,
) -> SubscribeResult:
    """Subscribe ``user`` to a tier, reusing their existing row for the service.

    Paid tiers are charged immediately. A declined or unconfirmed charge still
    writes the row, in PAYMENT_FAILED, so the user can retry with another card
    via :func:`update_subscription_payment_method` and a new subscribe.
    """
    service = await db.get(Service, service_id)
    if service is None:
        raise not_found("Service not found.")

    tier = next((t for t in service.subscription_tiers if t.id == tier_id), None)
    if tier is None:
        raise not_found("Tier not found.")

    payment_method: PaymentMethod | None = None
    if payment_method_id is not None:
        payment_method = await get_owned_payment_method(db, user, payment_method_id)
    elif not tier.is_free:
        raise bad_request("A payment method is required for paid tiers.")

    existing = await get_consumer_for_service(db, user.id, service.id)
    if (
        existing is not None
        and existing.subscription_tier_id == tier.id
        and existing.subscription_status == SubscriptionStatus.ACTIVE
    ):
        raise bad_request("Already subscribed to this tier.")

    charge: ChargeResult | None = None
    if not tier.is_free:
        charge = await _charge_for_tier(db, user, tier, payment_method)

    status = (
        SubscriptionStatus.ACTIVE
        if charge is None or charge.succeeded
        else SubscriptionStatus.PAYMENT_FAILED
    )
    now = utcnow()

    if existing is not None:
        consumer = existing
        consumer.subscription_tier_id = tier.id
        consumer.subscription_status = status.value
        consumer.payment_method_id = payment_method.id if payment_method else None
        consumer.renewing_subscription = auto_renewal
        consumer.subscription_start_date = now
        consumer.last_renewed = now
    else:
        consumer = ServiceConsumer(
            user_id=user.id,
            subscription_tier_id=tier.id,
            subscription_status=status.value,
            payment_method_id=payment_method.id if payment_method else None,
            renewing_subscription=auto_renewal,
            subscription_start_date=now,
            last_renewed=now,
        )
        db.add(consumer)

    await db.flush()
    await db.refresh(consumer)

    logger.info(
        "User %s subscribed to tier %s of service %s: status=%s",
        user.id,
        tier.id,
        service.id,
        consumer.subscription_status,
    )
    return SubscribeResult(consumer=consumer, charge=charge)


async def unsubscribe_from_tier(
    db: AsyncSession, user: User, subscription_tier_id: uuid.UUID
) -> ServiceConsumer:
    """Cancel a subscription.

    Paid tiers keep access until the end of the billing period
    (PENDING_CANCELLATION). Free tiers, and paid subscriptions that are no
    longer being paid for, are cancelled immediately.
    """
    consumer = await _require_consumer_for_tier(db, user, subscription_tier_id)

    if consumer.subscription_status in (
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.PENDING_CANCELLATION,
    ):
        raise bad_request("Subscription is already cancelled.")

    if consumer.subscription_status == SubscriptionStatus.ACTIVE and not consumer.subscription_tier.is_free:
        consumer.subscription_status = SubscriptionStatus.PENDING_CANCELLATION.value
    else:
        consumer.subscription_status = SubscriptionStatus.CANCELLED.value

    await db.flush()
    await db.refresh(consumer)
    logger.info(
        "User %s unsubscribed from tier %s: status=%s",
        user.id,
        subscription_tier_id,
        consumer.subscription_status,
    )
    return consumer


async def resume_subscription(
    db: AsyncSession, user: User, subscription_tier_id: uuid.UUID
) -> ServiceConsumer:
    """Undo a pending cancellation."""
    consumer = await _require_consumer_for_tier(db, user, subscription_tier_id)

    if consumer.subscription_status != SubscriptionStatus.PENDING_CANCELLATION:
        raise bad_request("Subscription is not pending cancellation.")

    consumer.subscription_status = SubscriptionStatus.ACTIVE.value
    await db.flush()
    await db.refresh(consumer)
    logger.info("User %s resumed subscription to tier %s", user.id, subscription_tier_id)
    return consumer


async def switch_subscription_tier(
    db: AsyncSession,
    user: User,
    old_tier_id: uuid.UUID,
    new_tier_id: uuid.UUID,
) -> ServiceConsumer:
    """Move a subscription to another tier of the same service.

    No charge, refund, or proration happens here; the new price applies from
    the next renewal.
    """
    consumer = await get_consumer_for_tier(db, user.id, old_tier_id)
    if consumer is None:
        raise not_found("Subscription not found.")

    new_tier = await db.get(SubscriptionTier, new_tier_id)
    if new_tier is None:
        raise not_found("New tier not found.")

    if new_tier.service_id != consumer.subscription_tier.service_id:
        raise bad_request("New tier belongs to a different service.")
    if new_tier.id == consumer.subscription_tier_id:
        raise bad_request("Already subscribed to this tier.")

    consumer.subscription_tier_id = new_tier.id
    await db.flush()
    await db.refresh(consumer)
    logger.info("User %s switched tier %s -> %s", user.id, old_tier_id, new_tier_id)
    return consumer


async def update_subscription_payment_method(
    db: AsyncSession,
    user: User,
    subscription_tier_id: uuid.UUID,
    payment_method_id: uuid.UUID,
    auto_renewal: bool | None = None,
) -> ServiceConsumer:
    """Point a subscription at another of the user's cards."""
    consumer = await _require_consumer_for_tier(db, user, subscription_tier_id)
    payment_method = await get_owned_payment_method(db, user, payment_method_id)

    consumer.payment_method_id = payment_method.id
    if auto_renewal is not None:
        consumer.renewing_subscription = auto_renewal

    await db.flush()
    await db.refresh(consumer)
    logger.info(
        "User %s set payment method %s on tier %s", user.id, payment_method.id, subscription_tier_id
    )
    return consumer


async def delete_subscription(
    db: AsyncSession, user: User, subscription_tier_id: uuid.UUID
) -> None:
    """Remove a subscription that is no longer active."""
    consumer = await _require_consumer_for_tier(db, user, subscription_tier_id)

    if consumer.subscription_status == SubscriptionStatus.ACTIVE:
        raise bad_request("Cannot delete an active subscription.")

    await db.delete(consumer)
    await db.flush()
    logger.info("User %s deleted subscription to tier %s", user.id, subscription_tier_id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_user_subscriptions(db: AsyncSession, user: User) -> list[ServiceConsumer]:
    result = await db.execute(
        select(ServiceConsumer)
        .where(ServiceConsumer.user_id == user.id)
        .order_by(ServiceConsumer.created_at.desc())
    )
    return list(result.scalars().all())


async def get_billing_history(db: AsyncSession, user: User) -> list[BillingReceipt]:
    """Receipts addressed to the user, newest first."""
    result = await db.execute(
        select(BillingReceipt)
        .where(BillingReceipt.to_id == user.id)
        .order_by(BillingReceipt.date.desc())
    )
    return list(result.scalars().all())


async def is_user_subscribed_to_service(
    db: AsyncSession, user: User, service_id: uuid.UUID
) -> tuple[bool, uuid.UUID | None]:
    """Return whether the user has an ACTIVE subscription, and to which tier."""
    result = await db.execute(
        select(ServiceConsumer.subscription_tier_id)
        .join(SubscriptionTier, ServiceConsumer.subscription_tier_id == SubscriptionTier.id)
        .where(
            ServiceConsumer.user_id == user.id,
            SubscriptionTier.service_id == service_id,
            ServiceConsumer.subscription_status == SubscriptionStatus.ACTIVE.value,
        )
        .limit(1)
    )
    tier_id = result.scalar_one_or_none()
    return tier_id is not None, tier_id


# ---------------------------------------------------------------------------
# Scheduled maintenance
# ---------------------------------------------------------------------------


def _period_cutoff(now: datetime | None) -> tuple[datetime, datetime]:
    now = now or utcnow()
    return now, now - timedelta(days=settings.billing_period_days)


async def check_subscription_cancellations(db: AsyncSession, now: datetime | None = None) -> int:
    """Finalise pending cancellations whose paid period has run out."""
    _, cutoff = _period_cutoff(now)
    result = await db.execute(
        select(ServiceConsumer).where(
            ServiceConsumer.subscription_status == SubscriptionStatus.PENDING_CANCELLATION.value,
            ServiceConsumer.last_renewed <= cutoff,
        )
    )
    consumers = list(result.scalars().all())

    for consumer in consumers:
        consumer.subscription_status = SubscriptionStatus.CANCELLED.value
    await db.flush()

    logger.info("Processed %d pending cancellations", len(consumers))
    return len(consumers)


def _renewal_key(consumer: ServiceConsumer) -> str:
    """Idempotency key for charging ``consumer`` for the period after ``last_renewed``."""
    return f"renewal-{consumer.id}-{consumer.last_renewed.isoformat()}"


async def _renew(db: AsyncSession, consumer: ServiceConsumer, now: datetime) -> None:
    if not consumer.renewing_subscription:
        consumer.subscription_status = SubscriptionStatus.EXPIRED.value
        logger.info("Subscription %s expired", consumer.id)
        return

    if consumer.payment_method is None:
        consumer.subscription_status = SubscriptionStatus.PAYMENT_FAILED.value
        logger.warning("Subscription %s has no payment method to renew with", consumer.id)
        return

    charge = await _charge_for_tier(
        db,
        consumer.user,
        consumer.subscription_tier,
        consumer.payment_method,
        idempotency_key=_renewal_key(consumer),
    )
    if charge.outcome is ChargeOutcome.SUCCESS:
        consumer.last_renewed = now
    else:
        consumer.subscription_status = SubscriptionStatus.PAYMENT_FAILED.value
    logger.info("Subscription %s renewal: %s", consumer.id, charge.outcome.value)


async def check_subscription_renewals(db: AsyncSession, now: datetime | None = None) -> int:
    """Renew or expire paid subscriptions whose billing period has ended.

    Auto-renewing subscriptions with a card are charged for another period;
    the rest expire. Each subscription is handled in its own savepoint: one
    that fails at the gateway is rolled back, logged, and left due for the
    next run, while the others are kept. Returns the number handled.
    """
    now, cutoff = _period_cutoff(now)
    result = await db.execute(
        select(ServiceConsumer)
        .join(SubscriptionTier, ServiceConsumer.subscription_tier_id == SubscriptionTier.id)
        .where(
            ServiceConsumer.subscription_status == SubscriptionStatus.ACTIVE.value,
            ServiceConsumer.last_renewed <= cutoff,
            SubscriptionTier.price_cents > 0,
        )
    )
    consumers = list(result.scalars().all())

    processed = 0
    for consumer in consumers:
        consumer_id = consumer.id
        try:
            async with db.begin_nested():
                await _renew(db, consumer, now)
        except (stripe.StripeError, MarketplaceError) as e:
            logger.error("Renewal of subscription %s failed, retrying next run: %s", consumer_id, e)
            continue
        processed += 1

    await db.flush()
    logger.info("Processed %d of %d subscription renewals", processed, len(consumers))
    return processed
