"""HTTP client module for httpstash.

Provides :class:`APIClient`, an asynchronous client built on
:class:`httpx.AsyncClient` whose decoded responses are cached through a
:class:`~httpstash.cache.PayloadCache`, together with its collaborators:

- :func:`build_request` and :class:`HTTPMethod` -- request construction.
- :func:`validate_response` and :func:`error_for_status` -- status checks.
- :class:`SingleFlight` -- optional coalescing of concurrent fetches.

Example::

    from httpstash.client import APIClient

    async with APIClient("https://api.example.com") as client:
        user = await client.get("/users/1", User)
"""

from httpstash.client.api_client import APIClient
from httpstash.client.request import HTTPMethod, build_request
from httpstash.client.singleflight import SingleFlight
from httpstash.client.validator import error_for_status, validate_response

__all__ = [
    "APIClient",
    "HTTPMethod",
    "SingleFlight",
    "build_request",
    "error_for_status",
    "validate_response",
]
