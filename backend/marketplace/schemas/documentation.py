"""Pydantic v2 request/response schemas for version, endpoint, and operation endpoints."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from marketplace.models.documentation import RestMethod

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class VersionCreate(BaseModel):
    version: str = Field(..., min_length=1, max_length=50)
    description: str = ""
    changelog: str | None = None


class VersionUpdate(BaseModel):
    version: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    changelog: str | None = None


class DocumentationUpdate(BaseModel):
    """Replace the markdown documentation of a version."""

    service_id: uuid.UUID
    service_version: str = Field(..., min_length=1)
    new_documentation: str = Field(..., min_length=1)


class EndpointCreate(BaseModel):
    path: str = Field(..., min_length=1, max_length=512, pattern=r"^/")
    description: str | None = None


class EndpointUpdate(BaseModel):
    path: str | None = Field(None, min_length=1, max_length=512, pattern=r"^/")
    description: str | None = None


class OperationCreate(BaseModel):
    method: RestMethod
    description: str | None = None
    parameters: list[dict[str, Any]] = Field(default_factory=list)
    request_body: dict[str, Any] | None = None
    responses: list[dict[str, Any]] = Field(default_factory=list)


class OperationUpdate(BaseModel):
    method: RestMethod | None = None
    description: str | None = None
    parameters: list[dict[str, Any]] | None = None
    request_body: dict[str, Any] | None = None
    responses: list[dict[str, Any]] | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OperationResponse(BaseModel):
    id: uuid.UUID
    endpoint_id: uuid.UUID
    method: RestMethod
    description: str | None = None
    parameters: list[dict[str, Any]]
    request_body: dict[str, Any] | None = None
    responses: list[dict[str, Any]]

    model_config = ConfigDict(from_attributes=True)


class EndpointResponse(BaseModel):
    id: uuid.UUID
    version_id: uuid.UUID
    path: str
    description: str | None = None
    operations: list[OperationResponse]

    model_config = ConfigDict(from_attributes=True)


class EndpointSummary(BaseModel):
    id: uuid.UUID
    path: str
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class VersionResponse(BaseModel):
    id: uuid.UUID
    service_id: uuid.UUID
    version: str
    description: str
    changelog: str | None = None
    endpoints: list[EndpointSummary]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
