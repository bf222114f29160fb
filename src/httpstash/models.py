"""Pydantic configuration models shared across httpstash.

All settings are serialised as JSON in the user's config directory (see
:mod:`httpstash.config`) and deserialised into :class:`Settings`. The
nested models map one-to-one onto the runtime collaborators:

* :class:`CacheConfig` -- :class:`~httpstash.cache.ObjectCache` construction.
* :class:`RequestConfig` -- :class:`~httpstash.client.APIClient` transport
  settings (timeout, retries, single-flight).
* :class:`AuthConfig` -- the :class:`~httpstash.auth.AuthProvider` to build.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    """Response cache settings."""

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: float = Field(
        default=600, ge=0, description="Seconds before a cached entry goes stale"
    )
    namespace: str = Field(
        default="httpstash_",
        description="File-name prefix scoping this cache's entries",
    )
    clear_on_init: bool = Field(
        default=True,
        description="Clear the namespace when the cache is constructed",
    )
    directory: Optional[str] = Field(
        default=None,
        description="Directory for cache files (defaults to the XDG cache dir)",
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(
        default=0, ge=0, description="Retries on connection errors and 5xx responses"
    )
    single_flight: bool = Field(
        default=False,
        description="Share one in-flight fetch between concurrent callers of the same key",
    )


class AuthConfig(BaseModel):
    """Authentication settings.

    ``type`` selects the provider (``basic`` or ``bearer``). ``source`` is a
    credential descriptor resolved by
    :func:`~httpstash.config.resolve_credential` (``env:VAR`` or
    ``file:/path``). For ``basic`` auth the resolved value is the password
    when ``username`` is set, otherwise a ``"username:password"`` string.

    Example::

        AuthConfig(type="bearer", source="env:API_TOKEN")
    """

    type: str = Field(description="Auth type: basic, bearer")
    source: str = Field(description="Credential source: env:VAR, file:/path")
    username: Optional[str] = Field(
        default=None, description="Username for basic auth"
    )


class Settings(BaseModel):
    """User-wide configuration persisted at ``~/.config/httpstash/config.json``.

    Loaded and saved by :func:`~httpstash.config.load_settings` and
    :func:`~httpstash.config.save_settings`. See
    :func:`~httpstash.config.resolve_settings` for the precedence chain.
    """

    base_url: Optional[str] = Field(default=None, description="API base URL")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers sent with every request"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    auth: Optional[AuthConfig] = None
