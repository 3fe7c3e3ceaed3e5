"""Pydantic v2 request/response schemas for the API tester."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from marketplace.services.api_tester import ApiRequest, KeyValue


class KeyValueIn(BaseModel):
    key: str
    value: str = ""
    enabled: bool = True


class ApiTestRequest(BaseModel):
    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH"]
    base_url: str = Field(..., min_length=1)
    path: str = ""
    headers: list[KeyValueIn] = Field(default_factory=list)
    query_params: list[KeyValueIn] = Field(default_factory=list)
    body: str | None = None

    def to_request(self) -> ApiRequest:
        return ApiRequest(
            method=self.method,
            base_url=self.base_url,
            path=self.path,
            headers=[KeyValue(h.key, h.value, h.enabled) for h in self.headers],
            query_params=[KeyValue(q.key, q.value, q.enabled) for q in self.query_params],
            body=self.body,
        )


class ApiTestResponse(BaseModel):
    status: int
    status_text: str
    headers: dict[str, str]
    data: Any = None
    time_ms: float
    size: int
