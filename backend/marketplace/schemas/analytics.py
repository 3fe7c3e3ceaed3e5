"""Pydantic v2 response schemas for provider analytics endpoints."""

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict


class RevenueResponse(BaseModel):
    total_revenue_cents: int


class ServiceCustomersResponse(BaseModel):
    service_id: uuid.UUID
    service_name: str
    customer_count: int

    model_config = ConfigDict(from_attributes=True)


class TotalCustomersResponse(BaseModel):
    total_customers: int


class TierCustomersResponse(BaseModel):
    tier_id: uuid.UUID
    tier_name: str
    price_cents: int
    customer_count: int

    model_config = ConfigDict(from_attributes=True)


class ServiceRef(BaseModel):
    service_id: uuid.UUID
    service_name: str

    model_config = ConfigDict(from_attributes=True)


class RevenuePointResponse(BaseModel):
    day: date
    revenue_cents: dict[uuid.UUID, int]

    model_config = ConfigDict(from_attributes=True)


class RevenueOverTimeResponse(BaseModel):
    """Daily revenue series for a chart: one entry per day, one value per service."""

    services: list[ServiceRef]
    points: list[RevenuePointResponse]
