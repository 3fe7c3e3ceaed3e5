"""Provider analytics: revenue and customer counts for owned services."""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import utcnow
from marketplace.models.billing import BillingReceipt, BillingStatus
from marketplace.models.service import Service, ServiceOwner
from marketplace.models.subscription import ServiceConsumer, SubscriptionStatus, SubscriptionTier
from marketplace.models.user import User
from marketplace.services.catalog_service import get_service, require_owner


@dataclass(frozen=True)
class ServiceCustomers:
    service_id: uuid.UUID
    service_name: str
    customer_count: int


@dataclass(frozen=True)
class TierCustomers:
    tier_id: uuid.UUID
    tier_name: str
    price_cents: int
    customer_count: int


@dataclass(frozen=True)
class RevenuePoint:
    """PAID revenue per owned service on one day, keyed by service id."""

    day: date
    revenue_cents: dict[uuid.UUID, int]


def _owned_service_ids(user: User):
    return select(ServiceOwner.service_id).where(ServiceOwner.user_id == user.id)


async def total_revenue_cents(db: AsyncSession, user: User) -> int:
    """Sum of PAID receipts on tiers of services the user owns."""
    result = await db.execute(
        select(func.coalesce(func.sum(BillingReceipt.amount_cents), 0))
        .join(SubscriptionTier, BillingReceipt.subscription_tier_id == SubscriptionTier.id)
        .where(
            BillingReceipt.status == BillingStatus.PAID.value,
            SubscriptionTier.service_id.in_(_owned_service_ids(user)),
        )
    )
    return int(result.scalar_one())


async def customers_per_service(db: AsyncSession, user: User) -> list[ServiceCustomers]:
    """ACTIVE consumer counts for each owned service, including services with none."""
    active_counts = (
        select(
            SubscriptionTier.service_id.label("service_id"),
            func.count(ServiceConsumer.id).label("customers"),
        )
        .join(ServiceConsumer, ServiceConsumer.subscription_tier_id == SubscriptionTier.id)
        .where(ServiceConsumer.subscription_status == SubscriptionStatus.ACTIVE.value)
        .group_by(SubscriptionTier.service_id)
        .subquery()
    )
    result = await db.execute(
        select(Service.id, Service.name, func.coalesce(active_counts.c.customers, 0))
        .outerjoin(active_counts, active_counts.c.service_id == Service.id)
        .where(Service.id.in_(_owned_service_ids(user)))
        .order_by(Service.name, Service.id)
    )
    return [
        ServiceCustomers(service_id=row[0], service_name=row[1], customer_count=int(row[2]))
        for row in result.all()
    ]


async def total_customers(db: AsyncSession, user: User) -> int:
    return sum(s.customer_count for s in await customers_per_service(db, user))


async def most_popular_service(db: AsyncSession, user: User) -> ServiceCustomers | None:
    """The owned service with the most ACTIVE customers, or None if the user owns none."""
    services = await customers_per_service(db, user)
    if not services:
        return None
    return max(services, key=lambda s: s.customer_count)


async def customers_per_tier(
    db: AsyncSession, user: User, service_id: uuid.UUID
) -> list[TierCustomers]:
    service = await get_service(db, service_id)
    require_owner(service, user)

    result = await db.execute(
        select(
            SubscriptionTier.id,
            SubscriptionTier.name,
            SubscriptionTier.price_cents,
            func.count(ServiceConsumer.id),
        )
        .outerjoin(
            ServiceConsumer,
            and_(
                ServiceConsumer.subscription_tier_id == SubscriptionTier.id,
                ServiceConsumer.subscription_status == SubscriptionStatus.ACTIVE.value,
            ),
        )
        .where(SubscriptionTier.service_id == service.id)
        .group_by(SubscriptionTier.id, SubscriptionTier.name, SubscriptionTier.price_cents)
        .order_by(SubscriptionTier.price_cents, SubscriptionTier.name)
    )
    return [
        TierCustomers(tier_id=row[0], tier_name=row[1], price_cents=row[2], customer_count=int(row[3]))
        for row in result.all()
    ]


async def revenue_over_time(
    db: AsyncSession, user: User, days: int = 365, today: date | None = None
) -> tuple[list[ServiceCustomers], list[RevenuePoint]]:
    """Daily PAID revenue for each owned service, oldest day first.

    Covers the ``days`` days before ``today`` plus ``today`` itself. Every
    owned service appears on every day, with 0 where nothing was paid.
    Returns the services (the chart legend) alongside the points.
    """
    today = today or utcnow().date()
    start = today - timedelta(days=days)

    services = await customers_per_service(db, user)
    result = await db.execute(
        select(SubscriptionTier.service_id, BillingReceipt.date, BillingReceipt.amount_cents)
        .join(SubscriptionTier, BillingReceipt.subscription_tier_id == SubscriptionTier.id)
        .where(
            BillingReceipt.status == BillingStatus.PAID.value,
            SubscriptionTier.service_id.in_(_owned_service_ids(user)),
            BillingReceipt.date >= datetime.combine(start, time.min),
            BillingReceipt.date < datetime.combine(today + timedelta(days=1), time.min),
        )
    )
    # summed per day here so the grouping does not depend on the database's date functions
    totals: dict[tuple[uuid.UUID, date], int] = {}
    for service_id, paid_at, amount_cents in result.all():
        key = (service_id, paid_at.date())
        totals[key] = totals.get(key, 0) + amount_cents

    points = []
    for offset in range(days + 1):
        day = start + timedelta(days=offset)
        points.append(
            RevenuePoint(
                day=day,
                revenue_cents={s.service_id: totals.get((s.service_id, day), 0) for s in services},
            )
        )
    return services, points
