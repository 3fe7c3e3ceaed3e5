"""Billing models: mirrored gateway payment methods and receipts."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.database import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow


class BillingStatus(str, enum.Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    FAILED = "FAILED"
    RECEIVED = "RECEIVED"


class PaymentMethod(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Local mirror of a Stripe card plus a billing address snapshot."""

    __tablename__ = "payment_methods"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Stripe identifiers
    stripe_customer_id: Mapped[str] = mapped_column(String(255), nullable=False)
    stripe_payment_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Card
    card_brand: Mapped[str | None] = mapped_column(String(50), default=None)
    last4: Mapped[str | None] = mapped_column(String(4), default=None)
    exp_month: Mapped[int | None] = mapped_column(default=None)
    exp_year: Mapped[int | None] = mapped_column(default=None)
    cardholder_name: Mapped[str | None] = mapped_column(String(255), default=None)

    # Billing address
    address_line1: Mapped[str | None] = mapped_column(String(255), default=None)
    address_line2: Mapped[str | None] = mapped_column(String(255), default=None)
    city: Mapped[str | None] = mapped_column(String(255), default=None)
    state: Mapped[str | None] = mapped_column(String(255), default=None)
    postal_code: Mapped[str | None] = mapped_column(String(32), default=None)
    country: Mapped[str | None] = mapped_column(String(2), default=None)

    user: Mapped["User"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<PaymentMethod(id={self.id}, brand={self.card_brand!r}, last4={self.last4!r})>"


class BillingReceipt(UUIDPrimaryKeyMixin, Base):
    """Append-only record of a billing event between two users."""

    __tablename__ = "billing_receipts"

    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    date: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(255), default=None)

    from_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    to_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    subscription_tier_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("subscription_tiers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    payment_method_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True
    )

    sender: Mapped["User | None"] = relationship(foreign_keys=[from_id], lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    recipient: Mapped["User | None"] = relationship(foreign_keys=[to_id], lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<BillingReceipt(id={self.id}, amount_cents={self.amount_cents}, status={self.status})>"
