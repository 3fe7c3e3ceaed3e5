"""Domain error type shared by the service layer and the HTTP surface.

Services raise :class:`MarketplaceError`; ``marketplace.main`` registers a
handler that turns it into ``{"success": false, "code": ..., "message": ...}``
with the status code for its :class:`ErrorKind`.
"""

import enum

from fastapi import status


class ErrorKind(str, enum.Enum):
    """Failure categories surfaced to API clients."""

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    BAD_REQUEST = "BAD_REQUEST"
    CONFLICT = "CONFLICT"
    UPSTREAM = "UPSTREAM"
    INTERNAL = "INTERNAL_SERVER_ERROR"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class MarketplaceError(Exception):
    """A failed marketplace operation."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"<MarketplaceError kind={self.kind.value} message={self.message!r}>"


def not_found(message: str) -> MarketplaceError:
    return MarketplaceError(ErrorKind.NOT_FOUND, message)


def forbidden(message: str) -> MarketplaceError:
    return MarketplaceError(ErrorKind.FORBIDDEN, message)


def bad_request(message: str) -> MarketplaceError:
    return MarketplaceError(ErrorKind.BAD_REQUEST, message)
