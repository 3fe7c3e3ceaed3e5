"""API tester route: proxy one request to a documented API and time it."""

import httpx
from fastapi import APIRouter, Depends

from marketplace.api.deps import get_current_active_user, get_http_client
from marketplace.models.user import User
from marketplace.schemas.api_tester import ApiTestRequest, ApiTestResponse
from marketplace.services.api_tester import send_request

router = APIRouter(prefix="/api/v1/api-tester", tags=["api-tester"])


@router.post("/send", response_model=ApiTestResponse)
async def send_test_request(
    body: ApiTestRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    current_user: User = Depends(get_current_active_user),
) -> ApiTestResponse:
    """Send the request built in the tester form and return the timed response.

    Upstream error statuses are returned as data, not raised.
    """
    response = await send_request(body.to_request(), client)
    return ApiTestResponse(
        status=response.status,
        status_text=response.status_text,
        headers=response.headers,
        data=response.data,
        time_ms=response.time_ms,
        size=response.size,
    )
