"""Subscription models: priced tiers and the consumers subscribed to them."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.database import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    PENDING_CANCELLATION = "PENDING_CANCELLATION"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    EXPIRED = "EXPIRED"


class SubscriptionTier(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A priced plan offered by a service."""

    __tablename__ = "subscription_tiers"

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # 0 = free
    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    service: Mapped["Service"] = relationship(back_populates="subscription_tiers", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    consumers: Mapped[list["ServiceConsumer"]] = relationship(
        back_populates="subscription_tier", lazy="selectin", cascade="all, delete-orphan"
    )

    @property
    def is_free(self) -> bool:
        return self.price_cents == 0

    def __repr__(self) -> str:
        return f"<SubscriptionTier(id={self.id}, name={self.name!r}, price_cents={self.price_cents})>"


class ServiceConsumer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A user's subscription to a tier."""

    __tablename__ = "service_consumers"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subscription_tier_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("subscription_tiers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payment_method_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True
    )

    subscription_status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=SubscriptionStatus.ACTIVE.value
    )
    renewing_subscription: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    subscription_start_date: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    last_renewed: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    # Relationships
    user: Mapped["User"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    subscription_tier: Mapped[SubscriptionTier] = relationship(back_populates="consumers", lazy="selectin")
    payment_method: Mapped["PaymentMethod | None"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<ServiceConsumer(id={self.id}, user_id={self.user_id}, "
            f"tier_id={self.subscription_tier_id}, status={self.subscription_status})>"
        )
