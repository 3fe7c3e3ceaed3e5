"""Catalog API routes: marketplace listing, services, tiers, and versions."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_current_active_user, get_db, get_optional_user
from marketplace.models.user import User
from marketplace.schemas.documentation import VersionCreate, VersionResponse
from marketplace.schemas.service import (
    ServiceCreate,
    ServiceDetailResponse,
    ServiceListResponse,
    ServiceResponse,
    ServiceUpdate,
    TierCreate,
    TierResponse,
)
from marketplace.services import catalog_service, documentation_service
from marketplace.services.subscription_service import is_user_subscribed_to_service

router = APIRouter(prefix="/api/v1/services", tags=["services"])


@router.post(
    "",
    response_model=ServiceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a new service",
)
async def create_service(
    body: ServiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ServiceDetailResponse:
    """Create a service owned by the authenticated user, with optional tags and tiers."""
    service = await catalog_service.create_service(
        db,
        current_user,
        name=body.name,
        description=body.description,
        tags=body.tags,
        tiers=[tier.model_dump() for tier in body.tiers],
    )
    return ServiceDetailResponse.model_validate(service)


@router.get(
    "",
    response_model=ServiceListResponse,
    summary="Search the marketplace",
)
async def list_services(
    search: str | None = Query(None, max_length=255),
    tags: list[str] | None = Query(None),
    min_price_cents: int | None = Query(None, ge=0),
    max_price_cents: int | None = Query(None, ge=0),
    cursor: uuid.UUID | None = Query(None),
    limit: int = Query(12, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> ServiceListResponse:
    """Public, cursor-paginated marketplace listing."""
    page = await catalog_service.get_by_query(
        db,
        search=search,
        tags=tags,
        min_price_cents=min_price_cents,
        max_price_cents=max_price_cents,
        cursor=cursor,
        limit=limit,
    )
    return ServiceListResponse(
        items=[ServiceResponse.model_validate(s) for s in page.services],
        next_cursor=page.next_cursor,
    )


@router.get(
    "/owned",
    response_model=list[ServiceResponse],
    summary="List services owned by the current user",
)
async def list_owned_services(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[ServiceResponse]:
    services = await catalog_service.list_owned_services(db, current_user)
    return [ServiceResponse.model_validate(s) for s in services]


@router.get(
    "/{service_id}",
    response_model=ServiceDetailResponse,
    summary="Get a service by ID",
)
async def get_service(
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> ServiceDetailResponse:
    """Public service page. Signed-in users also see whether they are subscribed."""
    service = await catalog_service.get_service(db, service_id)
    response = ServiceDetailResponse.model_validate(service)

    if current_user is not None:
        is_subscribed, tier_id = await is_user_subscribed_to_service(db, current_user, service.id)
        response = response.model_copy(
            update={"is_subscribed": is_subscribed, "subscribed_tier_id": tier_id}
        )
    return response


@router.patch(
    "/{service_id}",
    response_model=ServiceDetailResponse,
    summary="Update a service",
)
async def update_service(
    service_id: uuid.UUID,
    body: ServiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ServiceDetailResponse:
    """Partially update an owned service. Only explicitly set fields are changed."""
    service = await catalog_service.update_service(
        db, current_user, service_id, **body.model_dump(exclude_unset=True)
    )
    return ServiceDetailResponse.model_validate(service)


@router.post(
    "/{service_id}/tiers",
    response_model=TierResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a subscription tier",
)
async def add_tier(
    service_id: uuid.UUID,
    body: TierCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> TierResponse:
    tier = await catalog_service.add_tier(
        db,
        current_user,
        service_id,
        name=body.name,
        price_cents=body.price_cents,
        features=body.features,
    )
    return TierResponse.model_validate(tier)


@router.get(
    "/{service_id}/tiers",
    response_model=list[TierResponse],
    summary="List a service's tiers",
)
async def list_tiers(
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[TierResponse]:
    tiers = await catalog_service.list_tiers(db, service_id)
    return [TierResponse.model_validate(t) for t in tiers]


@router.post(
    "/{service_id}/versions",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a version",
)
async def create_version(
    service_id: uuid.UUID,
    body: VersionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VersionResponse:
    service_version = await documentation_service.create_version(
        db,
        current_user,
        service_id,
        version=body.version,
        description=body.description,
        changelog=body.changelog,
    )
    return VersionResponse.model_validate(service_version)


@router.get(
    "/{service_id}/versions/{version}",
    response_model=VersionResponse,
    summary="Get a version and its endpoints",
)
async def get_version(
    service_id: uuid.UUID,
    version: str,
    db: AsyncSession = Depends(get_db),
) -> VersionResponse:
    service_version = await documentation_service.get_version(db, service_id, version)
    return VersionResponse.model_validate(service_version)
