"""Version API routes: documentation edits and endpoint creation."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_current_active_user, get_db
from marketplace.models.user import User
from marketplace.schemas.common import MessageResponse
from marketplace.schemas.documentation import (
    DocumentationUpdate,
    EndpointCreate,
    EndpointResponse,
    VersionResponse,
    VersionUpdate,
)
from marketplace.services import documentation_service

router = APIRouter(prefix="/api/v1/versions", tags=["versions"])


@router.put(
    "/documentation",
    response_model=MessageResponse,
    summary="Replace a version's documentation",
)
async def edit_documentation(
    body: DocumentationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    await documentation_service.edit_documentation(
        db,
        current_user,
        service_id=body.service_id,
        version=body.service_version,
        new_documentation=body.new_documentation,
    )
    return MessageResponse(message="Documentation updated")


@router.patch(
    "/{version_id}",
    response_model=VersionResponse,
    summary="Update a version",
)
async def update_version(
    version_id: uuid.UUID,
    body: VersionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VersionResponse:
    service_version = await documentation_service.update_version(
        db, current_user, version_id, body.model_dump(exclude_unset=True)
    )
    return VersionResponse.model_validate(service_version)


@router.post(
    "/{version_id}/endpoints",
    response_model=EndpointResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an endpoint to a version",
)
async def create_endpoint(
    version_id: uuid.UUID,
    body: EndpointCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> EndpointResponse:
    endpoint = await documentation_service.create_endpoint(
        db, current_user, version_id, path=body.path, description=body.description
    )
    return EndpointResponse.model_validate(endpoint)
