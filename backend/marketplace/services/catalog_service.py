"""Catalog service: published services, their tags, and subscription tiers."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.errors import forbidden, not_found
from marketplace.models.service import Service, ServiceOwner, Tag
from marketplace.models.subscription import SubscriptionTier
from marketplace.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServicePage:
    services: list[Service]
    next_cursor: uuid.UUID | None


def require_owner(service: Service, user: User) -> None:
    """Raise FORBIDDEN unless ``user`` is one of the service's owners."""
    if not service.is_owned_by(user.id):
        raise forbidden("You do not own this service.")


async def _get_or_create_tags(db: AsyncSession, names: list[str]) -> list[Tag]:
    wanted = sorted({n.strip() for n in names if n.strip()})
    if not wanted:
        return []

    result = await db.execute(select(Tag).where(Tag.name.in_(wanted)))
    tags = {tag.name: tag for tag in result.scalars().all()}
    for name in wanted:
        if name not in tags:
            tags[name] = Tag(name=name)
            db.add(tags[name])
    await db.flush()
    return [tags[name] for name in wanted]


async def create_service(
    db: AsyncSession,
    user: User,
    name: str,
    description: str | None = None,
    tags: list[str] | None = None,
    tiers: list[dict] | None = None,
) -> Service:
    """Publish a new service owned by ``user``."""
    service = Service(name=name, description=description)
    service.owners = [ServiceOwner(user_id=user.id)]
    service.tags = await _get_or_create_tags(db, tags or [])
    service.subscription_tiers = [SubscriptionTier(**tier) for tier in tiers or []]
    service.versions = []
    db.add(service)
    await db.flush()
    await db.refresh(service)

    logger.info("User %s created service %s (%s)", user.id, service.id, service.name)
    return service


async def get_service(db: AsyncSession, service_id: uuid.UUID) -> Service:
    service = await db.get(Service, service_id)
    if service is None:
        raise not_found("Service not found.")
    return service


async def update_service(
    db: AsyncSession,
    user: User,
    service_id: uuid.UUID,
    name: str | None = None,
    description: str | None = None,
    tags: list[str] | None = None,
) -> Service:
    """Edit an owned service. ``None`` leaves a field unchanged."""
    service = await get_service(db, service_id)
    require_owner(service, user)

    if name is not None:
        service.name = name
    if description is not None:
        service.description = description
    if tags is not None:
        service.tags = await _get_or_create_tags(db, tags)

    await db.flush()
    await db.refresh(service)
    return service


async def list_owned_services(db: AsyncSession, user: User) -> list[Service]:
    result = await db.execute(
        select(Service)
        .join(ServiceOwner, ServiceOwner.service_id == Service.id)
        .where(ServiceOwner.user_id == user.id)
        .order_by(Service.name, Service.id)
    )
    return list(result.scalars().unique().all())


async def get_by_query(
    db: AsyncSession,
    search: str | None = None,
    tags: list[str] | None = None,
    min_price_cents: int | None = None,
    max_price_cents: int | None = None,
    cursor: uuid.UUID | None = None,
    limit: int = 12,
) -> ServicePage:
    """Marketplace listing: filter by name, tags, and tier price.

    Results are ordered by ``(name, id)``. ``cursor`` is the id of the last
    service on the previous page.
    """
    filters = []
    if search:
        filters.append(Service.name.ilike(f"%{search}%"))
    if tags:
        filters.append(Service.tags.any(Tag.name.in_(tags)))
    if min_price_cents is not None or max_price_cents is not None:
        price_filters = []
        if min_price_cents is not None:
            price_filters.append(SubscriptionTier.price_cents >= min_price_cents)
        if max_price_cents is not None:
            price_filters.append(SubscriptionTier.price_cents <= max_price_cents)
        filters.append(Service.subscription_tiers.any(and_(*price_filters)))

    if cursor is not None:
        anchor = await db.get(Service, cursor)
        if anchor is None:
            raise not_found("Cursor service not found.")
        filters.append(
            or_(
                Service.name > anchor.name,
                and_(Service.name == anchor.name, Service.id > anchor.id),
            )
        )

    result = await db.execute(
        select(Service).where(*filters).order_by(Service.name, Service.id).limit(limit + 1)
    )
    services = list(result.scalars().all())

    next_cursor = None
    if len(services) > limit:
        services = services[:limit]
        next_cursor = services[-1].id

    return ServicePage(services=services, next_cursor=next_cursor)


async def add_tier(
    db: AsyncSession,
    user: User,
    service_id: uuid.UUID,
    name: str,
    price_cents: int,
    features: list[str] | None = None,
) -> SubscriptionTier:
    """Offer a new tier on an owned service. Tiers are not editable afterwards."""
    service = await get_service(db, service_id)
    require_owner(service, user)

    tier = SubscriptionTier(name=name, price_cents=price_cents, features=features or [])
    service.subscription_tiers.append(tier)
    await db.flush()
    await db.refresh(tier)

    logger.info("Added tier %s (%d cents) to service %s", tier.name, tier.price_cents, service.id)
    return tier


async def list_tiers(db: AsyncSession, service_id: uuid.UUID) -> list[SubscriptionTier]:
    service = await get_service(db, service_id)
    return sorted(service.subscription_tiers, key=lambda t: (t.price_cents, t.name))
