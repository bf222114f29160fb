"""File-backed payload caching for httpstash.

This package provides :class:`ObjectCache`, which stores decoded response
payloads as JSON files with a time-to-live tracked in an
:class:`ExpiryStore`, and :class:`NullCache`, a drop-in that caches nothing.
Both implement :class:`PayloadCache`, the interface consumed by
:class:`~httpstash.client.APIClient`.
"""

from httpstash.cache.cache import NullCache, ObjectCache, PayloadCache
from httpstash.cache.codec import JSONCodec
from httpstash.cache.expiry import ExpiryStore
from httpstash.cache.keys import sanitize_key

__all__ = [
    "ExpiryStore",
    "JSONCodec",
    "NullCache",
    "ObjectCache",
    "PayloadCache",
    "sanitize_key",
]
