"""Analytics API routes: revenue and customer counts for service owners."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_current_active_user, get_db
from marketplace.models.user import User
from marketplace.schemas.analytics import (
    RevenueOverTimeResponse,
    RevenuePointResponse,
    RevenueResponse,
    ServiceCustomersResponse,
    ServiceRef,
    TierCustomersResponse,
    TotalCustomersResponse,
)
from marketplace.services import analytics_service

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


@router.get("/revenue", response_model=RevenueResponse)
async def get_total_revenue(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> RevenueResponse:
    total = await analytics_service.total_revenue_cents(db, current_user)
    return RevenueResponse(total_revenue_cents=total)


@router.get("/revenue/daily", response_model=RevenueOverTimeResponse)
async def get_revenue_over_time(
    days: int = Query(365, ge=1, le=366),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> RevenueOverTimeResponse:
    """Revenue per day for each owned service, zero-filled, oldest day first."""
    services, points = await analytics_service.revenue_over_time(db, current_user, days=days)
    return RevenueOverTimeResponse(
        services=[ServiceRef.model_validate(s) for s in services],
        points=[RevenuePointResponse.model_validate(p) for p in points],
    )


@router.get("/customers", response_model=list[ServiceCustomersResponse])
async def get_customers_per_service(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[ServiceCustomersResponse]:
    rows = await analytics_service.customers_per_service(db, current_user)
    return [ServiceCustomersResponse.model_validate(r) for r in rows]


@router.get("/customers/total", response_model=TotalCustomersResponse)
async def get_total_customers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> TotalCustomersResponse:
    total = await analytics_service.total_customers(db, current_user)
    return TotalCustomersResponse(total_customers=total)


@router.get("/popular-service", response_model=ServiceCustomersResponse | None)
async def get_most_popular_service(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ServiceCustomersResponse | None:
    """The owned service with the most active customers; null if none are owned."""
    service = await analytics_service.most_popular_service(db, current_user)
    return ServiceCustomersResponse.model_validate(service) if service else None


@router.get("/services/{service_id}/tiers", response_model=list[TierCustomersResponse])
async def get_customers_per_tier(
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[TierCustomersResponse]:
    rows = await analytics_service.customers_per_tier(db, current_user, service_id)
    return [TierCustomersResponse.model_validate(r) for r in rows]
