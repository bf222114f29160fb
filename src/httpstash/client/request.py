"""Request construction: HTTP methods and :func:`build_request`.

Turns a method, base URL, path, headers, query parameters and an optional
body into a ready-to-send :class:`httpx.Request`. Failures are raised as
the request-side members of the error taxonomy:

- :class:`~httpstash.exceptions.InvalidTargetError` -- the URL is malformed.
- :class:`~httpstash.exceptions.MissingBodyError` -- POST/PUT/PATCH without a body.
- :class:`~httpstash.exceptions.EncodeError` -- the body is not JSON-serialisable.
"""

from __future__ import annotations

import enum
from typing import Any, Mapping, Optional

import httpx

from httpstash.cache.codec import JSONCodec
from httpstash.exceptions import InvalidTargetError, MissingBodyError

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class HTTPMethod(str, enum.Enum):
    """HTTP methods the client can send."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @property
    def requires_body(self) -> bool:
        return self in (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)


def join_url(base_url: str, path: str) -> str:
    """Append *path* to *base_url* as a path component.

    ``join_url("https://api.example.com/v1/", "/users")`` gives
    ``https://api.example.com/v1/users``. With an empty base the path is
    used as-is.
    """
    if not base_url:
        return path
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def build_request(
    method: HTTPMethod | str,
    base_url: str,
    path: str,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, Any]] = None,
    body: Any = None,
    codec: Optional[JSONCodec] = None,
) -> httpx.Request:
    """Build an :class:`httpx.Request`.

    JSON ``Content-Type`` and ``Accept`` headers are always set; *headers*
    override them. Query parameters with a ``None`` value are dropped.

    Args:
        method: HTTP method.
        base_url: Scheme and host, optionally with a path prefix.
        path: Resource path appended to *base_url*.
        headers: Extra request headers.
        params: Query parameters.
        body: Payload for body-carrying methods, encoded as compact JSON.
            Ignored for methods that do not carry a body.
        codec: Codec for the body; defaults to compact :class:`JSONCodec`.

    Raises:
        InvalidTargetError: If the URL lacks a scheme or host or cannot be parsed.
        MissingBodyError: If *method* requires a body and *body* is ``None``.
        EncodeError: If *body* cannot be serialised.
    """
    method = HTTPMethod(method.upper() if isinstance(method, str) else method)

    raw_url = join_url(base_url, path)
    try:
        url = httpx.URL(raw_url)
    except httpx.InvalidURL as exc:
        raise InvalidTargetError(f"The URL is invalid: {raw_url!r} ({exc})") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidTargetError(f"The URL is invalid: {raw_url!r}")

    merged_headers = {**DEFAULT_HEADERS, **(headers or {})}
    query = {k: v for k, v in (params or {}).items() if v is not None}

    content: Optional[bytes] = None
    if method.requires_body:
        if body is None:
            raise MissingBodyError(f"{method.value} {path} requires a request body")
        content = (codec or JSONCodec(indent=None)).encode(body)

    return httpx.Request(
        method.value,
        url,
        params=query or None,
        headers=merged_headers,
        content=content,
    )
