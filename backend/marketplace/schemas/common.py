"""Pydantic v2 schemas shared across routers."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Result of a mutation that returns no record."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Body returned for every MarketplaceError."""

    success: bool = False
    code: str
    message: str
