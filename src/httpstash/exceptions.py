"""Exception hierarchy for httpstash.

Every failure a request can hit -- building the request, the transport
call, a non-2xx status, decoding the body or a cached payload -- is raised
as a :class:`RequestError` subclass. Each class carries a closed
:class:`ErrorKind` tag so callers can switch on ``exc.kind`` exhaustively,
and an ``exit_code`` used by the CLI entry point.

Subclass hierarchy::

    HttpstashError (exit 1)
    +-- ConfigError                 (exit 1)
    +-- RequestError
        +-- InvalidTargetError      (exit 2)
        +-- MissingBodyError        (exit 2)
        +-- EncodeError             (exit 2)
        +-- DecodeError             (exit 7)
        +-- TransportError          (exit 6)
        +-- UnauthorizedError       (exit 3)
        +-- ForbiddenError          (exit 3)
        +-- NotFoundError           (exit 4)
        +-- MethodNotAllowedError   (exit 2)
        +-- ServerError             (exit 5)
        |   +-- InternalServerError
        |   +-- BadGatewayError
        |   +-- ServiceUnavailableError
        +-- UnexpectedStatusError   (exit 8)
        +-- UnknownError            (exit 1)
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from httpstash.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_UNEXPECTED_STATUS,
)


class ErrorKind(str, Enum):
    """Discriminator shared by every :class:`HttpstashError`."""

    CONFIG = "config"
    INVALID_TARGET = "invalid_target"
    MISSING_BODY = "missing_body"
    ENCODE_FAILURE = "encode_failure"
    DECODE_FAILURE = "decode_failure"
    TRANSPORT_FAILURE = "transport_failure"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    SERVER_ERROR = "server_error"
    UNEXPECTED_STATUS = "unexpected_status"
    UNKNOWN = "unknown"


class HttpstashError(Exception):
    """Base exception for all httpstash errors.

    Every subclass sets a class-level ``exit_code`` and ``kind``. The CLI
    entry point catches this type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description. Falls back to the
            class-level ``default_message``.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    kind: ErrorKind = ErrorKind.UNKNOWN
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, exit_code: int | None = None):
        super().__init__(message or self.default_message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(HttpstashError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    kind = ErrorKind.CONFIG
    default_message = "Invalid configuration"


class RequestError(HttpstashError):
    """Base class for every failure surfaced by :class:`~httpstash.client.APIClient`."""


class InvalidTargetError(RequestError):
    """The base URL and path do not form a valid request URL."""

    exit_code = EXIT_INVALID_USAGE
    kind = ErrorKind.INVALID_TARGET
    default_message = "The URL is invalid"


class MissingBodyError(RequestError):
    """A body-carrying method (POST, PUT, PATCH) was given no body."""

    exit_code = EXIT_INVALID_USAGE
    kind = ErrorKind.MISSING_BODY
    default_message = "Request body is required for this method"


class EncodeError(RequestError):
    """The request body could not be serialised."""

    exit_code = EXIT_INVALID_USAGE
    kind = ErrorKind.ENCODE_FAILURE
    default_message = "Failed to encode request body"


class DecodeError(RequestError):
    """A response body or a stored cache payload could not be decoded."""

    exit_code = EXIT_DECODE_ERROR
    kind = ErrorKind.DECODE_FAILURE
    default_message = "Failed to decode response body"


class TransportError(RequestError):
    """Network-level failure: timeout, DNS resolution, connection refused or reset."""

    exit_code = EXIT_CONNECTION_ERROR
    kind = ErrorKind.TRANSPORT_FAILURE
    default_message = "Network error"


class HTTPStatusError(RequestError):
    """Base class for failures derived from a response status code.

    Args:
        message: Optional message; defaults to ``default_message``.
        status_code: The HTTP status the server answered with, or ``-1``
            when the response was not a recognised HTTP response.
    """

    status_code: int = -1

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class UnauthorizedError(HTTPStatusError):
    """HTTP 401."""

    exit_code = EXIT_AUTH_FAILURE
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401
    default_message = (
        "Unauthorised: Authentication is required and has failed or has not yet been provided"
    )


class ForbiddenError(HTTPStatusError):
    """HTTP 403."""

    exit_code = EXIT_AUTH_FAILURE
    kind = ErrorKind.FORBIDDEN
    status_code = 403
    default_message = "Forbidden: The server understood the request but refuses to authorise it"


class NotFoundError(HTTPStatusError):
    """HTTP 404."""

    exit_code = EXIT_NOT_FOUND
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Not Found: The requested resource could not be found"


class MethodNotAllowedError(HTTPStatusError):
    """HTTP 405."""

    exit_code = EXIT_INVALID_USAGE
    kind = ErrorKind.METHOD_NOT_ALLOWED
    status_code = 405
    default_message = (
        "Method Not Allowed: The request method is not supported for the requested resource"
    )


class ServerError(HTTPStatusError):
    """Server-class failure (HTTP 500, 502, 503)."""

    exit_code = EXIT_SERVER_ERROR
    kind = ErrorKind.SERVER_ERROR
    status_code = 500
    default_message = "Server error"


class InternalServerError(ServerError):
    status_code = 500
    default_message = (
        "Internal Server Error: The server encountered an unexpected condition "
        "that prevented it from fulfilling the request"
    )


class BadGatewayError(ServerError):
    status_code = 502
    default_message = (
        "Bad Gateway: The server was acting as a gateway or proxy and received "
        "an invalid response from the upstream server"
    )


class ServiceUnavailableError(ServerError):
    status_code = 503
    default_message = "Service Unavailable: The server is not ready to handle the request"


class UnexpectedStatusError(HTTPStatusError):
    """Any other non-2xx status, or ``-1`` for a response that is not HTTP at all."""

    exit_code = EXIT_UNEXPECTED_STATUS
    kind = ErrorKind.UNEXPECTED_STATUS

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"Unexpected status code: {status_code}", status_code)


class UnknownError(RequestError):
    """Catch-all for failures no other kind describes.

    The original exception is kept on :attr:`cause` (and as ``__cause__``
    when raised with ``from``).
    """

    kind = ErrorKind.UNKNOWN

    def __init__(self, cause: BaseException, message: Optional[str] = None):
        super().__init__(message or f"Unknown error: {cause}")
        self.cause = cause
