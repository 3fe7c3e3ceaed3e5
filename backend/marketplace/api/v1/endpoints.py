"""Endpoint API routes: endpoint docs and their operations."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_current_active_user, get_db
from marketplace.models.user import User
from marketplace.schemas.documentation import (
    EndpointResponse,
    EndpointUpdate,
    OperationCreate,
    OperationResponse,
    OperationUpdate,
)
from marketplace.services import documentation_service

router = APIRouter(prefix="/api/v1/endpoints", tags=["endpoints"])


@router.get(
    "/{endpoint_id}",
    response_model=EndpointResponse,
    summary="Get an endpoint with its operations",
)
async def get_endpoint(
    endpoint_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> EndpointResponse:
    endpoint = await documentation_service.get_endpoint(db, endpoint_id)
    return EndpointResponse.model_validate(endpoint)


@router.patch(
    "/{endpoint_id}",
    response_model=EndpointResponse,
    summary="Update an endpoint",
)
async def update_endpoint(
    endpoint_id: uuid.UUID,
    body: EndpointUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> EndpointResponse:
    endpoint = await documentation_service.update_endpoint(
        db, current_user, endpoint_id, body.model_dump(exclude_unset=True)
    )
    return EndpointResponse.model_validate(endpoint)


@router.post(
    "/{endpoint_id}/operations",
    response_model=OperationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Document an operation on an endpoint",
)
async def create_operation(
    endpoint_id: uuid.UUID,
    body: OperationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> OperationResponse:
    operation = await documentation_service.create_operation(
        db, current_user, endpoint_id, **body.model_dump(mode="json")
    )
    return OperationResponse.model_validate(operation)


@router.patch(
    "/operations/{operation_id}",
    response_model=OperationResponse,
    summary="Update an operation",
)
async def update_operation(
    operation_id: uuid.UUID,
    body: OperationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> OperationResponse:
    operation = await documentation_service.update_operation(
        db, current_user, operation_id, body.model_dump(mode="json", exclude_unset=True)
    )
    return OperationResponse.model_validate(operation)
