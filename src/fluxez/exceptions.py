"""Custom exceptions for Fluxez Realtime."""

from __future__ import annotations

from typing import Any


class FluxezError(Exception):
    """Base exception for all Fluxez errors."""

    pass


class ConnectionError(FluxezError):
    """Operation requires an open realtime connection."""

    pass


class ProtocolError(FluxezError):
    """Invalid message or protocol violation."""

    pass


class ErrorCodes:
    """Error codes attached to ApiError."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    UNPROCESSABLE_ENTITY = "UNPROCESSABLE_ENTITY"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"

    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    BAD_GATEWAY = "BAD_GATEWAY"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    GATEWAY_TIMEOUT = "GATEWAY_TIMEOUT"

    NETWORK_ERROR = "NETWORK_ERROR"


_STATUS_CODES = {
    400: ErrorCodes.BAD_REQUEST,
    401: ErrorCodes.UNAUTHORIZED,
    403: ErrorCodes.FORBIDDEN,
    404: ErrorCodes.NOT_FOUND,
    409: ErrorCodes.CONFLICT,
    422: ErrorCodes.UNPROCESSABLE_ENTITY,
    429: ErrorCodes.TOO_MANY_REQUESTS,
    500: ErrorCodes.INTERNAL_SERVER_ERROR,
    501: ErrorCodes.NOT_IMPLEMENTED,
    502: ErrorCodes.BAD_GATEWAY,
    503: ErrorCodes.SERVICE_UNAVAILABLE,
    504: ErrorCodes.GATEWAY_TIMEOUT,
}


class ApiError(FluxezError):
    """
    Control-plane HTTP request failed.

    Attributes:
        status_code: HTTP status, or 0 when no response was received
        code: Error code (server supplied, or derived from the status)
        details: Parsed response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code or code_for_status(status_code)
        self.details = details

    @property
    def is_retryable(self) -> bool:
        """Whether the request is worth retrying."""
        return (
            self.status_code == 0
            or self.status_code >= 500
            or self.status_code in (408, 429)
        )

    @classmethod
    def from_response(cls, status: int, body: Any) -> "ApiError":
        """Build an error from an HTTP error response."""
        message = f"Request failed with status {status}"
        code = None
        if isinstance(body, dict):
            message = body.get("message") or message
            code = body.get("code")
        return cls(message, status_code=status, code=code, details=body)

    @classmethod
    def network(cls, error: Exception) -> "ApiError":
        """Build an error for a request that got no response."""
        return cls(
            f"Network error - no response received: {error}",
            status_code=0,
            code=ErrorCodes.NETWORK_ERROR,
        )

    def __repr__(self) -> str:
        return f"ApiError({str(self)!r}, status_code={self.status_code}, code={self.code!r})"


def code_for_status(status: int) -> str:
    """Map an HTTP status to an error code."""
    return _STATUS_CODES.get(status, ErrorCodes.INTERNAL_SERVER_ERROR)
