"""
Drip SDK errors.

Every error raised by the SDK is a :class:`DripError`. Each carries an
:class:`ErrorKind` for programmatic branching, the HTTP ``status_code``
(``0`` for local and transport errors) and an optional machine ``code``
supplied by the server.

Example:
    >>> try:
    ...     client.get_customer("cus_missing")
    ... except DripNotFoundError:
    ...     ...
    ... except DripError as e:
    ...     print(e.kind, e.status_code, e.code)
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Category of a :class:`DripError`."""

    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    AUTHENTICATION = "AUTHENTICATION"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    PARSE = "PARSE"
    API = "API"


class DripError(Exception):
    """Base exception for all Drip SDK errors."""

    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status_code={self.status_code}, code={self.code!r})"
        )


class DripAPIError(DripError):
    """The API answered with a non-2xx status not covered by a narrower type."""


class DripAuthenticationError(DripError):
    """Raised on 401 Unauthorized."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(
        self,
        message: str = "Invalid or missing API key",
        status_code: int = 401,
        code: str | None = "UNAUTHORIZED",
    ) -> None:
        super().__init__(message, status_code, code)


class DripMissingCredentialError(DripAuthenticationError):
    """No API key was supplied and none was found in the environment."""

    kind = ErrorKind.MISSING_CREDENTIAL

    def __init__(
        self,
        message: str = (
            "API key is required. Pass it directly or set DRIP_API_KEY environment variable."
        ),
    ) -> None:
        super().__init__(message, status_code=0, code="NO_API_KEY")


class DripNotFoundError(DripError):
    """Raised on 404 Not Found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Resource not found", code: str | None = "NOT_FOUND") -> None:
        super().__init__(message, 404, code)


class DripRateLimitError(DripError):
    """Raised on 429 Too Many Requests."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self, message: str = "Rate limit exceeded", code: str | None = "RATE_LIMITED"
    ) -> None:
        super().__init__(message, 429, code)


class DripNetworkError(DripError):
    """The request never produced an HTTP response."""

    kind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str = "Network error",
        original_error: Exception | None = None,
        code: str | None = "NETWORK_ERROR",
    ) -> None:
        super().__init__(message, 0, code)
        self.original_error = original_error


class DripTimeoutError(DripError):
    """The request exceeded the configured timeout."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str = "Request timed out",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, 0, "TIMEOUT")
        self.original_error = original_error


class DripParseError(DripError):
    """The response body was not valid JSON."""

    kind = ErrorKind.PARSE

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code, "PARSE_ERROR")


def _error_message(status_code: int, body: Any) -> str:
    if isinstance(body, dict):
        for field in ("message", "error"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    return f"Request failed with status {status_code}"


def create_api_error_from_response(status_code: int, body: Any) -> DripError:
    """
    Build the error matching an HTTP error response.

    Args:
        status_code: HTTP status of the response.
        body: Decoded JSON body (any JSON value).

    Returns:
        A DripError subclass instance; the caller raises it.
    """
    message = _error_message(status_code, body)
    code = body.get("code") if isinstance(body, dict) else None
    if not isinstance(code, str):
        code = None

    if status_code == 401:
        return DripAuthenticationError(message, code=code or "UNAUTHORIZED")
    if status_code == 404:
        return DripNotFoundError(message, code=code or "NOT_FOUND")
    if status_code == 429:
        return DripRateLimitError(message, code=code or "RATE_LIMITED")
    return DripAPIError(message, status_code, code)
