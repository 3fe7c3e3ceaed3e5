"""Service model: a published API with owners, tags, versions, and tiers."""

import uuid

from sqlalchemy import Column, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

service_tags = Table(
    "service_tags",
    Base.metadata,
    Column("service_id", ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(UUIDPrimaryKeyMixin, Base):
    """A marketplace category label."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Tag name={self.name!r}>"


class Service(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An API published on the marketplace."""

    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)

    # Relationships
    owners: Mapped[list["ServiceOwner"]] = relationship(
        back_populates="service", lazy="selectin", cascade="all, delete-orphan"
    )
    tags: Mapped[list[Tag]] = relationship(secondary=service_tags, lazy="selectin")
    versions: Mapped[list["ServiceVersion"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="service", lazy="selectin", cascade="all, delete-orphan"
    )
    subscription_tiers: Mapped[list["SubscriptionTier"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="service", lazy="selectin", cascade="all, delete-orphan"
    )

    @property
    def owner_ids(self) -> list[uuid.UUID]:
        return [owner.user_id for owner in self.owners]

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return any(owner.user_id == user_id for owner in self.owners)

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name={self.name!r})>"


class ServiceOwner(UUIDPrimaryKeyMixin, Base):
    """Links a user to a service they can edit and get paid for."""

    __tablename__ = "service_owners"

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    service: Mapped[Service] = relationship(back_populates="owners", lazy="selectin")
    user: Mapped["User"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
