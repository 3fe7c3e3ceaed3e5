"""Documentation models: versions, endpoints, and operations of a service."""

import enum
import uuid

from sqlalchemy import JSON, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class RestMethod(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    TRACE = "TRACE"


class ServiceVersion(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A released version of a service's API and its documentation."""

    __tablename__ = "service_versions"
    __table_args__ = (UniqueConstraint("service_id", "version", name="uq_service_version"),)

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    changelog: Mapped[str | None] = mapped_column(Text, default=None)

    service: Mapped["Service"] = relationship(back_populates="versions", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    endpoints: Mapped[list["Endpoint"]] = relationship(
        back_populates="version", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ServiceVersion(service_id={self.service_id}, version={self.version!r})>"


class Endpoint(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A documented path within a service version."""

    __tablename__ = "endpoints"
    __table_args__ = (UniqueConstraint("version_id", "path", name="uq_endpoint_path"),)

    version_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("service_versions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    path: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)

    version: Mapped[ServiceVersion] = relationship(back_populates="endpoints", lazy="selectin")
    operations: Mapped[list["Operation"]] = relationship(
        back_populates="endpoint", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Endpoint(id={self.id}, path={self.path!r})>"


class Operation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One HTTP method on an endpoint, with its parameter and schema docs."""

    __tablename__ = "operations"
    __table_args__ = (UniqueConstraint("endpoint_id", "method", name="uq_operation_method"),)

    endpoint_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("endpoints.id", ondelete="CASCADE"), nullable=False, index=True
    )
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    parameters: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    request_body: Mapped[dict | None] = mapped_column(JSON, default=None)
    responses: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    endpoint: Mapped[Endpoint] = relationship(back_populates="operations", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Operation(id={self.id}, method={self.method})>"
