"""Pydantic v2 response schemas for notification endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from marketplace.schemas.user import UserSummary


class NotificationResponse(BaseModel):
    id: uuid.UUID
    content: str
    read: bool
    created_at: datetime
    sender: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationPageResponse(BaseModel):
    notifications: list[NotificationResponse]
    next_cursor: uuid.UUID | None = None
