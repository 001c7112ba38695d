"""Error hierarchy for the supervisor client."""

from __future__ import annotations

import json
from typing import Any


class ClientError(Exception):
    """Base error for all client errors."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


# --- API errors (from HTTP responses) ---


class APIError(ClientError):
    """Error status returned by the backend."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
        raw: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.detail = detail
        self.raw = raw


class BadRequestError(APIError):
    """400/422 - Malformed request."""


class AuthenticationError(APIError):
    """401 - Missing or invalid credentials."""


class AccessDeniedError(APIError):
    """403 - Permission denied."""


class NotFoundError(APIError):
    """404 - Endpoint not found."""


class RateLimitError(APIError):
    """429 - Too many requests."""


class ServerError(APIError):
    """500-599 - Backend server error."""


# --- Non-API errors ---


class RequestTimeoutError(ClientError):
    """408 - Request timed out."""


class NetworkError(ClientError):
    """Network connectivity issue."""


class StreamError(ClientError):
    """Error during streaming."""


class AbortError(ClientError):
    """Operation was cancelled."""


class InvalidResponseError(ClientError):
    """Response body does not have the expected shape."""


class ConfigurationError(ClientError):
    """Client misconfiguration."""


# --- Factory ---

_STATUS_MAP: dict[int, type[APIError | RequestTimeoutError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: AccessDeniedError,
    404: NotFoundError,
    408: RequestTimeoutError,
    422: BadRequestError,
    429: RateLimitError,
    500: ServerError,
    502: ServerError,
    503: ServerError,
    504: ServerError,
}


def detail_from_body(raw: Any, status_code: int) -> str:
    """Pull the ``detail`` field out of a JSON error body.

    Falls back to a generic status message when the body has no usable detail.
    """
    if isinstance(raw, dict):
        detail = raw.get("detail")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            # FastAPI validation errors carry a list of objects
            return json.dumps(detail)
    return f"HTTP error! status: {status_code}"


def error_from_status_code(
    *,
    status_code: int,
    message: str,
    detail: str | None = None,
    raw: dict[str, Any] | None = None,
) -> ClientError:
    """Create the appropriate error type from an HTTP status code and message."""
    error_cls = _STATUS_MAP.get(status_code)

    if error_cls is None:
        error_cls = ServerError

    if error_cls is RequestTimeoutError:
        return RequestTimeoutError(message)

    return error_cls(
        message,
        status_code=status_code,
        detail=detail,
        raw=raw,
    )
