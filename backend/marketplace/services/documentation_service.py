"""Documentation service: versions, endpoints, and operations of a service."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.errors import ErrorKind, MarketplaceError, not_found
from marketplace.models.documentation import Endpoint, Operation, ServiceVersion
from marketplace.models.service import ServiceOwner
from marketplace.models.user import User
from marketplace.services.catalog_service import get_service, require_owner
from marketplace.services.notification_service import notify_service_consumers

logger = logging.getLogger(__name__)


def _conflict(message: str) -> MarketplaceError:
    return MarketplaceError(ErrorKind.CONFLICT, message)


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------


async def create_version(
    db: AsyncSession,
    user: User,
    service_id: uuid.UUID,
    version: str,
    description: str = "",
    changelog: str | None = None,
) -> ServiceVersion:
    service = await get_service(db, service_id)
    require_owner(service, user)

    if any(v.version == version for v in service.versions):
        raise _conflict(f"Version {version} already exists for this service.")

    service_version = ServiceVersion(version=version, description=description, changelog=changelog)
    service_version.endpoints = []
    service.versions.append(service_version)
    await db.flush()
    await db.refresh(service_version)

    logger.info("Added version %s to service %s", version, service.id)
    await notify_service_consumers(
        db, user, service.id, f"{service.name} released version {version}."
    )
    return service_version


async def get_version(db: AsyncSession, service_id: uuid.UUID, version: str) -> ServiceVersion:
    result = await db.execute(
        select(ServiceVersion).where(
            ServiceVersion.service_id == service_id,
            ServiceVersion.version == version,
        )
    )
    service_version = result.scalar_one_or_none()
    if service_version is None:
        raise not_found("Service or specified version not found")
    return service_version


async def edit_documentation(
    db: AsyncSession,
    user: User,
    service_id: uuid.UUID,
    version: str,
    new_documentation: str,
) -> ServiceVersion:
    """Replace a version's documentation.

    A version the caller does not own is reported as missing.
    """
    result = await db.execute(
        select(ServiceVersion)
        .join(ServiceOwner, ServiceOwner.service_id == ServiceVersion.service_id)
        .where(
            ServiceVersion.service_id == service_id,
            ServiceVersion.version == version,
            ServiceOwner.user_id == user.id,
        )
    )
    service_version = result.scalars().first()
    if service_version is None:
        raise not_found("Service or specified version not found")

    service_version.description = new_documentation
    await db.flush()
    await db.refresh(service_version)
    return service_version


async def update_version(
    db: AsyncSession,
    user: User,
    version_id: uuid.UUID,
    data: dict,
) -> ServiceVersion:
    service_version = await db.get(ServiceVersion, version_id)
    if service_version is None:
        raise not_found("Version not found")
    require_owner(service_version.service, user)

    new_label = data.get("version")
    if new_label is not None and new_label != service_version.version:
        if any(v.version == new_label for v in service_version.service.versions):
            raise _conflict(f"Version {new_label} already exists for this service.")

    for field, value in data.items():
        setattr(service_version, field, value)

    await db.flush()
    await db.refresh(service_version)
    return service_version


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


async def _get_owned_version(db: AsyncSession, user: User, version_id: uuid.UUID) -> ServiceVersion:
    service_version = await db.get(ServiceVersion, version_id)
    if service_version is None:
        raise not_found("Version not found")
    require_owner(service_version.service, user)
    return service_version


async def create_endpoint(
    db: AsyncSession,
    user: User,
    version_id: uuid.UUID,
    path: str,
    description: str | None = None,
) -> Endpoint:
    service_version = await _get_owned_version(db, user, version_id)

    if any(e.path == path for e in service_version.endpoints):
        raise _conflict(f"Endpoint {path} already exists in this version.")

    endpoint = Endpoint(path=path, description=description)
    endpoint.operations = []
    service_version.endpoints.append(endpoint)
    await db.flush()
    await db.refresh(endpoint)

    logger.info("Added endpoint %s to version %s", path, service_version.id)
    return endpoint


async def get_endpoint(db: AsyncSession, endpoint_id: uuid.UUID) -> Endpoint:
    endpoint = await db.get(Endpoint, endpoint_id)
    if endpoint is None:
        raise not_found("Endpoint not found")
    return endpoint


async def update_endpoint(
    db: AsyncSession,
    user: User,
    endpoint_id: uuid.UUID,
    data: dict,
) -> Endpoint:
    endpoint = await get_endpoint(db, endpoint_id)
    require_owner(endpoint.version.service, user)

    new_path = data.get("path")
    if new_path is not None and new_path != endpoint.path:
        if any(e.path == new_path for e in endpoint.version.endpoints):
            raise _conflict(f"Endpoint {new_path} already exists in this version.")

    for field, value in data.items():
        setattr(endpoint, field, value)

    await db.flush()
    await db.refresh(endpoint)
    return endpoint


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def create_operation(
    db: AsyncSession,
    user: User,
    endpoint_id: uuid.UUID,
    method: str,
    description: str | None = None,
    parameters: list | None = None,
    request_body: dict | None = None,
    responses: list | None = None,
) -> Operation:
    endpoint = await get_endpoint(db, endpoint_id)
    require_owner(endpoint.version.service, user)

    if any(op.method == method for op in endpoint.operations):
        raise _conflict(f"{method} is already documented for {endpoint.path}.")

    operation = Operation(
        method=method,
        description=description,
        parameters=parameters or [],
        request_body=request_body,
        responses=responses or [],
    )
    endpoint.operations.append(operation)
    await db.flush()
    await db.refresh(operation)

    logger.info("Added %s operation to endpoint %s", method, endpoint.id)
    return operation


async def update_operation(
    db: AsyncSession,
    user: User,
    operation_id: uuid.UUID,
    data: dict,
) -> Operation:
    operation = await db.get(Operation, operation_id)
    if operation is None:
        raise not_found("Operation not found")
    require_owner(operation.endpoint.version.service, user)

    new_method = data.get("method")
    if new_method is not None and new_method != operation.method:
        if any(op.method == new_method for op in operation.endpoint.operations):
            raise _conflict(f"{new_method} is already documented for {operation.endpoint.path}.")

    for field, value in data.items():
        setattr(operation, field, value)

    await db.flush()
    await db.refresh(operation)
    return operation
