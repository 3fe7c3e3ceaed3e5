"""Shared API dependencies: single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from marketplace.api.deps import get_db, get_current_active_user
"""

from collections.abc import AsyncIterator

import httpx

from marketplace.auth.dependencies import (
    get_current_active_user,
    get_current_user,
    get_optional_user,
)
from marketplace.config import settings
from marketplace.database import get_db


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Yield an outbound HTTP client for the API tester."""
    async with httpx.AsyncClient(timeout=settings.api_tester_timeout_seconds) as client:
        yield client


__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "get_optional_user",
    "get_http_client",
]
