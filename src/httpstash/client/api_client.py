"""Asynchronous API client with a read-through/write-through payload cache.

:class:`APIClient` is the request pipeline. For every ``get``/``post`` it:

1. optionally invalidates the cache entry (``get(..., invalidate_cache=True)``),
2. returns the cached payload on a fresh hit, without any network I/O,
3. otherwise builds the request (auth headers, JSON body, query string),
4. sends it through :class:`httpx.AsyncClient`, retrying connection errors
   and 5xx responses when ``max_retries`` is set,
5. validates the status, decodes the body into the requested type,
6. writes the decoded value back to the cache and returns it.

The only suspension point is the transport call (plus retry back-off
sleeps). Every failure leaves as a
:class:`~httpstash.exceptions.RequestError` subclass; anything
unrecognised is wrapped in :class:`~httpstash.exceptions.UnknownError`.

Concurrent misses on the same key each fetch and the last write wins,
unless ``single_flight=True``, in which case callers of the same key and
response type share one fetch.

See Also:
    :class:`~httpstash.cache.ObjectCache` for the storage and expiry rules.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Hashable, Mapping, Optional, TypeVar

import httpx

from httpstash.auth import AuthProvider, provider_from_config
from httpstash.cache import JSONCodec, ObjectCache, PayloadCache, sanitize_key
from httpstash.client.request import HTTPMethod, build_request
from httpstash.client.singleflight import SingleFlight
from httpstash.client.validator import validate_httpx_response
from httpstash.config import get_cache_dir
from httpstash.exceptions import (
    InvalidTargetError,
    RequestError,
    TransportError,
    UnknownError,
)

if TYPE_CHECKING:
    from httpstash.models import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class APIClient:
    """Async HTTP client whose decoded responses are cached on disk.

    Use it as an async context manager so the underlying
    :class:`httpx.AsyncClient` and any cache the client opened itself are
    closed on exit.

    Args:
        base_url: Scheme, host and optional path prefix for every request.
        cache: Payload cache. When omitted an :class:`ObjectCache` is
            opened in the XDG cache directory and closed by :meth:`aclose`.
            Pass :class:`NullCache` to disable caching.
        codec: Decodes response bodies into the requested type.
        auth: Provider of authentication headers.
        headers: Extra headers sent with every request.
        timeout: Transport timeout in seconds.
        max_retries: Retries on connection errors and 5xx responses, with
            exponential back-off (1 s, 2 s, 4 s, ...).
        verify_ssl: Verify TLS certificates.
        single_flight: Share one in-flight fetch between concurrent
            callers of the same cache key and response type.
        transport: Custom :class:`httpx.AsyncBaseTransport`, mainly for tests.

    Example::

        async with APIClient("https://api.example.com", auth=BearerTokenProvider(tok)) as client:
            users = await client.get("/users", list[User])
            fresh = await client.get("/users", list[User], invalidate_cache=True)
    """

    def __init__(
        self,
        base_url: str,
        cache: Optional[PayloadCache] = None,
        codec: Optional[JSONCodec] = None,
        auth: Optional[AuthProvider] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = 30,
        max_retries: int = 0,
        verify_ssl: bool = True,
        single_flight: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._owns_cache = cache is None
        self._cache: PayloadCache = cache if cache is not None else ObjectCache(get_cache_dir())
        self._codec = codec or JSONCodec()
        self._body_codec = JSONCodec(indent=None)
        self._auth = auth
        self._headers = dict(headers or {})
        self._timeout = timeout
        self._max_retries = max_retries
        self._verify_ssl = verify_ssl
        self._flight: Optional[SingleFlight] = SingleFlight() if single_flight else None
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        settings: Settings,
        cache: Optional[PayloadCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> APIClient:
        """Build a client from resolved :class:`~httpstash.models.Settings`.

        Raises:
            ConfigError: If the auth credential cannot be resolved.
        """
        auth = provider_from_config(settings.auth) if settings.auth else None
        owns_cache = cache is None
        if cache is None:
            cache = ObjectCache.from_config(settings.cache)
        client = cls(
            settings.base_url or "",
            cache=cache,
            auth=auth,
            headers=settings.headers,
            timeout=settings.request.timeout,
            max_retries=settings.request.max_retries,
            verify_ssl=settings.request.verify_ssl,
            single_flight=settings.request.single_flight,
            transport=transport,
        )
        client._owns_cache = owns_cache
        return client

    @property
    def cache(self) -> PayloadCache:
        return self._cache

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> APIClient:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client and, if this client opened it, the cache."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._owns_cache:
            self._cache.close()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def get(
        self,
        path: str,
        response_type: type[T] | Any = Any,
        params: Optional[Mapping[str, Any]] = None,
        invalidate_cache: bool = False,
        cache_key: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> T:
        """Fetch *path* and decode the body into *response_type*.

        Args:
            path: Resource path appended to the base URL.
            response_type: Type to decode into (``list[User]``, a
                dataclass, ``dict``...). ``Any`` returns plain JSON data.
            params: Query parameters. They are not part of the default
                cache key; pass *cache_key* when they select different
                resources.
            invalidate_cache: Drop the cached entry before fetching.
            cache_key: Cache key to use instead of *path*.
            headers: Extra headers for this request only.

        Raises:
            RequestError: Any member of the error taxonomy.
        """
        key = cache_key or path
        if invalidate_cache:
            self._cache.invalidate(key)
        return await self._fetch(HTTPMethod.GET, path, key, response_type, params, None, headers)

    async def post(
        self,
        path: str,
        body: Any,
        response_type: type[T] | Any = Any,
        params: Optional[Mapping[str, Any]] = None,
        cache_key: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> T:
        """Send *body* as JSON to *path* and decode the response.

        POST responses go through the same cache as GET and are keyed by
        path as well, so a cached GET for *path* is returned without
        sending the POST.

        Raises:
            RequestError: Any member of the error taxonomy.
        """
        key = cache_key or path
        return await self._fetch(HTTPMethod.POST, path, key, response_type, params, body, headers)

    def clear_all_cache(self) -> None:
        """Remove every entry from the client's cache."""
        self._cache.clear_all()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _fetch(
        self,
        method: HTTPMethod,
        path: str,
        key: str,
        response_type: Any,
        params: Optional[Mapping[str, Any]],
        body: Any,
        headers: Optional[Mapping[str, str]],
    ) -> Any:
        if self._flight is None:
            return await self._perform(method, path, key, response_type, params, body, headers)
        # Callers asking for different types must not share one decoded value.
        return await self._flight.do(
            (sanitize_key(key), _type_token(response_type)),
            lambda: self._perform(method, path, key, response_type, params, body, headers),
        )

    async def _perform(
        self,
        method: HTTPMethod,
        path: str,
        key: str,
        response_type: Any,
        params: Optional[Mapping[str, Any]],
        body: Any,
        headers: Optional[Mapping[str, str]],
    ) -> Any:
        try:
            cached = self._cache.read(key, response_type)
            if cached is not None:
                return cached
            logger.debug("Cache miss: %s %s", method.value, key)

            request = build_request(
                method,
                self._base_url,
                path,
                headers=self._merge_headers(headers),
                params=params,
                body=body,
                codec=self._body_codec,
            )
            response = await self._send_with_retry(request)
            validate_httpx_response(response)

            result = self._codec.decode(response.content, response_type)
            self._cache.write(result, key)
            return result
        except RequestError:
            raise
        except httpx.InvalidURL as exc:
            raise InvalidTargetError(f"The URL is invalid: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Network error: {exc}") from exc
        except Exception as exc:
            raise UnknownError(exc) from exc

    def _merge_headers(self, headers: Optional[Mapping[str, str]]) -> dict[str, str]:
        """Auth headers first, then client-wide headers, then per-call headers."""
        merged: dict[str, str] = {}
        if self._auth is not None:
            merged.update(self._auth.headers())
        merged.update(self._headers)
        merged.update(headers or {})
        return merged

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def _send_with_retry(self, request: httpx.Request) -> httpx.Response:
        """Send *request*, retrying with exponential back-off.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        After the last attempt a 5xx response is returned for validation and
        a connection error is raised as :class:`TransportError`.
        """
        client = self._ensure_client()

        for attempt in range(self._max_retries + 1):
            try:
                response = await client.send(request)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < self._max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %d/%d)",
                        exc, delay, attempt + 1, self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise TransportError(
                    f"Connection failed after {attempt + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < self._max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, self._max_retries,
                )
                await asyncio.sleep(delay)
                continue

            return response

        raise TransportError("Request failed after all retries")  # pragma: no cover


def _type_token(response_type: Any) -> Hashable:
    """Hashable stand-in for *response_type* in single-flight keys."""
    try:
        hash(response_type)
    except TypeError:
        return id(response_type)
    return response_type
