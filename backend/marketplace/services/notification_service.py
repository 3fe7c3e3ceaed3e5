"""Notifications: owners broadcast to consumers, recipients read and dismiss."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.errors import forbidden, not_found
from marketplace.models.notification import Notification
from marketplace.models.subscription import ServiceConsumer, SubscriptionStatus, SubscriptionTier
from marketplace.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationPage:
    notifications: list[Notification]
    next_cursor: uuid.UUID | None


async def notify_service_consumers(
    db: AsyncSession, sender: User, service_id: uuid.UUID, content: str
) -> int:
    """Send ``content`` to every ACTIVE consumer of a service. Returns the count sent."""
    result = await db.execute(
        select(ServiceConsumer.user_id)
        .join(SubscriptionTier, ServiceConsumer.subscription_tier_id == SubscriptionTier.id)
        .where(
            SubscriptionTier.service_id == service_id,
            ServiceConsumer.subscription_status == SubscriptionStatus.ACTIVE.value,
        )
        .distinct()
    )
    recipient_ids = list(result.scalars().all())

    db.add_all(
        Notification(content=content, recipient_id=recipient_id, sender_id=sender.id)
        for recipient_id in recipient_ids
    )
    await db.flush()

    logger.info("Sent %d notifications for service %s", len(recipient_ids), service_id)
    return len(recipient_ids)


async def list_notifications(
    db: AsyncSession,
    user: User,
    include_read: bool = False,
    cursor: uuid.UUID | None = None,
    limit: int = 50,
) -> NotificationPage:
    """The caller's notifications, newest first.

    ``cursor`` is the id of the last notification on the previous page.
    """
    filters = [Notification.recipient_id == user.id]
    if not include_read:
        filters.append(Notification.read.is_(False))

    if cursor is not None:
        anchor = await db.get(Notification, cursor)
        if anchor is None or anchor.recipient_id != user.id:
            raise not_found("Cursor notification not found.")
        filters.append(
            or_(
                Notification.created_at < anchor.created_at,
                and_(Notification.created_at == anchor.created_at, Notification.id < anchor.id),
            )
        )

    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit + 1)
    )
    notifications = list(result.scalars().all())

    next_cursor = None
    if len(notifications) > limit:
        notifications = notifications[:limit]
        next_cursor = notifications[-1].id

    return NotificationPage(notifications=notifications, next_cursor=next_cursor)


async def _get_own_notification(
    db: AsyncSession, user: User, notification_id: uuid.UUID, action: str
) -> Notification:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise not_found("Notification not found.")
    if notification.recipient_id != user.id:
        raise forbidden(f"Cannot {action} someone else's notification.")
    return notification


async def mark_as_read(db: AsyncSession, user: User, notification_id: uuid.UUID) -> None:
    notification = await _get_own_notification(db, user, notification_id, "mark as read")
    notification.read = True
    await db.flush()


async def mark_all_as_read(db: AsyncSession, user: User) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.recipient_id == user.id, Notification.read.is_(False))
        .values(read=True)
    )
    return result.rowcount


async def delete_notification(db: AsyncSession, user: User, notification_id: uuid.UUID) -> None:
    notification = await _get_own_notification(db, user, notification_id, "delete")
    await db.delete(notification)
    await db.flush()
