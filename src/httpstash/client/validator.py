"""Response status validation.

:func:`validate_response` accepts any 2xx status and raises the matching
:class:`~httpstash.exceptions.HTTPStatusError` subclass for everything
else. A response that is not a recognised HTTP response at all maps to
``UnexpectedStatusError(-1)``.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from httpstash.exceptions import (
    BadGatewayError,
    ForbiddenError,
    HTTPStatusError,
    InternalServerError,
    MethodNotAllowedError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
    UnexpectedStatusError,
)

_STATUS_ERRORS: dict[int, type[HTTPStatusError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    405: MethodNotAllowedError,
    500: InternalServerError,
    502: BadGatewayError,
    503: ServiceUnavailableError,
}

_DETAIL_LIMIT = 200


def error_for_status(status_code: int, detail: str = "") -> HTTPStatusError:
    """Return (not raise) the error for a non-2xx *status_code*.

    Args:
        status_code: The HTTP status, or ``-1`` for a non-HTTP response.
        detail: Optional server-provided message appended to the default one.
    """
    error_cls = _STATUS_ERRORS.get(status_code)
    if error_cls is None:
        message = f"Unexpected status code: {status_code}"
        if detail:
            message = f"{message}: {detail}"
        return UnexpectedStatusError(status_code, message)
    message = error_cls.default_message
    if detail:
        message = f"{message} ({detail})"
    return error_cls(message)


def validate_response(
    status_code: Optional[int],
    well_formed: bool = True,
    detail: str = "",
) -> None:
    """Raise unless *status_code* is a 2xx from a well-formed HTTP response.

    Raises:
        UnexpectedStatusError: With ``status_code == -1`` when *well_formed*
            is false or no status is available.
        HTTPStatusError: The subclass matching *status_code* otherwise.
    """
    if not well_formed or status_code is None:
        raise UnexpectedStatusError(-1)
    if not 200 <= status_code <= 299:
        raise error_for_status(status_code, detail)


def validate_httpx_response(response: Any) -> None:
    """Validate whatever the transport handed back.

    Anything other than an :class:`httpx.Response` counts as malformed.
    """
    if not isinstance(response, httpx.Response):
        validate_response(None, well_formed=False)
        return
    status = response.status_code
    if 200 <= status <= 299:
        return
    validate_response(status, detail=_error_detail(response))


def _error_detail(response: httpx.Response) -> str:
    """Pull a short error message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:_DETAIL_LIMIT] if response.text else ""
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error") or body.get("detail") or ""
        return str(msg)[:_DETAIL_LIMIT]
    return str(body)[:_DETAIL_LIMIT]
