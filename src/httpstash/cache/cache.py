"""File-backed object cache with time-based expiry.

:class:`ObjectCache` stores each entry as one pretty-printed JSON file at
``<root>/<namespace><sanitized key>`` and records the write time in an
:class:`~httpstash.cache.expiry.ExpiryStore`. Reads consult the timestamp
first, so a stale or unknown key never touches the disk. Stale entries are
not deleted; they are ignored until the next write replaces them.

Writes are best-effort: :meth:`ObjectCache.write` never raises and reports
success as a ``bool`` the caller is free to ignore. Corrupt payloads are the
opposite: :meth:`ObjectCache.read` raises
:class:`~httpstash.exceptions.DecodeError` instead of returning garbage.

:class:`NullCache` implements the same :class:`PayloadCache` contract and
does nothing, for turning caching off without touching call sites.

Entry states::

    ABSENT --write--> FRESH --(ttl elapses)--> STALE
      ^                 |                        |
      +--invalidate/clear_all-------------------+
    STALE --write--> FRESH
"""

from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar, Union

from httpstash.cache.codec import JSONCodec
from httpstash.cache.expiry import STORE_ERRORS, ExpiryStore
from httpstash.cache.keys import sanitize_key
from httpstash.config import atomic_write, get_cache_dir
from httpstash.exceptions import DecodeError, EncodeError

if TYPE_CHECKING:
    from httpstash.models import CacheConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 60 * 10
DEFAULT_NAMESPACE = "httpstash_"
EXPIRY_DIRNAME = ".httpstash-expiry"


class PayloadCache(ABC):
    """Contract shared by :class:`ObjectCache` and :class:`NullCache`."""

    @abstractmethod
    def read(self, key: str, response_type: Any = Any) -> Any:
        """Return the fresh payload stored under *key*, or ``None``.

        Raises:
            DecodeError: If a stored payload cannot be decoded into
                *response_type*.
        """

    @abstractmethod
    def write(self, payload: Any, key: str) -> bool:
        """Store *payload* under *key*. Never raises; returns ``True`` on success."""

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Remove the entry for *key*. Idempotent."""

    @abstractmethod
    def clear_all(self) -> None:
        """Remove every entry this cache owns."""

    def stats(self) -> dict[str, Any]:
        return {"enabled": False}

    def close(self) -> None:
        """Release resources held by the cache."""


class ObjectCache(PayloadCache):
    """Disk-backed cache for decoded response payloads.

    Args:
        root: Directory holding the payload files. Created if missing.
            Several caches may share a root as long as neither namespace
            is a prefix of the other (``"app_"`` and ``"app_v2_"`` are not
            isolated: clearing the first also clears the second).
        ttl_seconds: Age after which an entry reads as absent. An entry
            exactly ``ttl_seconds`` old is still fresh.
        namespace: File-name prefix for this cache's entries. Also
            prefixes the expiry-store records.
        clear_on_init: Run :meth:`clear_all` during construction so each
            process starts with an empty namespace.
        expiry_store: Store for last-write times. When omitted one is opened
            at ``<root>/.httpstash-expiry`` and closed by :meth:`close`.
        codec: Serialisation capability; defaults to pretty-printed JSON.
        clock: Returns the current epoch time. Injectable for tests.

    Example::

        cache = ObjectCache(tmp_path, ttl_seconds=60, clear_on_init=False)
        cache.write({"id": 1, "name": "Ada"}, "/users/1")
        cache.read("/users/1", dict)  # -> {"id": 1, "name": "Ada"}
    """

    def __init__(
        self,
        root: Union[str, Path],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        namespace: str = DEFAULT_NAMESPACE,
        clear_on_init: bool = True,
        expiry_store: Optional[ExpiryStore] = None,
        codec: Optional[JSONCodec] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._ttl = ttl_seconds
        self._namespace = namespace
        self._codec = codec or JSONCodec()
        self._clock = clock
        self._owns_expiry = expiry_store is None
        self._expiry = expiry_store or ExpiryStore(self._root / EXPIRY_DIRNAME)

        if clear_on_init:
            self.clear_all()

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        root: Union[str, Path, None] = None,
    ) -> PayloadCache:
        """Build a cache from :class:`~httpstash.models.CacheConfig`.

        Returns a :class:`NullCache` when ``config.enabled`` is false. The
        root directory is, in order: *root*, ``config.directory``, the XDG
        cache directory.
        """
        if not config.enabled:
            return NullCache()
        if root is None:
            root = Path(config.directory).expanduser() if config.directory else get_cache_dir()
        return cls(
            root,
            ttl_seconds=config.ttl_seconds,
            namespace=config.namespace,
            clear_on_init=config.clear_on_init,
        )

    @property
    def root(self) -> Path:
        return self._root

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def entry_name(self, key: str) -> str:
        """Return the namespaced, sanitised name used on disk and in the expiry store."""
        return self._namespace + sanitize_key(key)

    def entry_path(self, key: str) -> Path:
        """Return the payload file path for *key*."""
        return self._root / self.entry_name(key)

    # ------------------------------------------------------------------ #
    # PayloadCache
    # ------------------------------------------------------------------ #

    def read(self, key: str, response_type: type[T] | Any = Any) -> Optional[T]:
        name = self.entry_name(key)
        if self._is_stale(name):
            return None

        path = self._root / name
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise DecodeError(f"Cannot read cache entry {path}: {exc}") from exc

        payload = self._codec.decode(data, response_type)
        logger.debug("Cache hit: %s", key)
        return payload

    def write(self, payload: Any, key: str) -> bool:
        name = self.entry_name(key)
        try:
            data = self._codec.encode(payload)
            atomic_write(self._root / name, data)
        except (EncodeError, OSError) as exc:
            logger.debug("Cache write skipped for %s: %s", key, exc)
            return False
        try:
            self._expiry.record_write(name, self._clock())
        except STORE_ERRORS as exc:
            # The new file keeps its previous timestamp, or none.
            logger.debug("Cache timestamp not recorded for %s: %s", key, exc)
            return False
        return True

    def invalidate(self, key: str) -> None:
        name = self.entry_name(key)
        try:
            (self._root / name).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.debug("Cannot remove cache entry %s: %s", name, exc)
        self._forget(name)

    def clear_all(self) -> None:
        """Remove every file in the root whose name carries this namespace.

        Enumerates the whole root directory, so the cost grows with the
        number of files there, not only this namespace's entries. Errors
        from the filesystem or the expiry store are logged and skipped.
        Expiry records under the namespace with no file behind them are
        swept too.

        Matching is by plain prefix: a cache with namespace ``"app_"`` also
        clears the entries of a cache using ``"app_v2_"`` in the same root.
        """
        try:
            entries = list(os.scandir(self._root))
        except OSError as exc:
            logger.debug("Cannot list cache directory %s: %s", self._root, exc)
            entries = []

        for entry in entries:
            if not entry.name.startswith(self._namespace):
                continue
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                os.unlink(entry.path)
            except OSError as exc:
                logger.debug("Cannot remove cache entry %s: %s", entry.path, exc)
                continue
            self._forget(entry.name)

        try:
            orphans = self._expiry.names(self._namespace)
        except STORE_ERRORS as exc:
            logger.debug("Cannot list expiry records for %s: %s", self._namespace, exc)
            orphans = []
        for name in orphans:
            self._forget(name)

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled``, ``directory``, ``namespace``,
            ``ttl_seconds`` and ``size`` (number of payload files in the
            namespace, fresh or stale).
        """
        try:
            size = sum(
                1 for entry in os.scandir(self._root)
                if entry.name.startswith(self._namespace) and entry.is_file()
            )
        except OSError:
            size = 0
        return {
            "enabled": True,
            "directory": str(self._root),
            "namespace": self._namespace,
            "ttl_seconds": self._ttl,
            "size": size,
        }

    def close(self) -> None:
        """Close the expiry store if this cache opened it."""
        if self._owns_expiry:
            self._expiry.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _is_stale(self, name: str) -> bool:
        written_at = self._expiry.last_write(name)
        if written_at is None:
            return True
        return self._clock() - written_at > self._ttl

    def _forget(self, name: str) -> None:
        try:
            self._expiry.forget(name)
        except STORE_ERRORS as exc:
            logger.debug("Cannot drop expiry record %s: %s", name, exc)


class NullCache(PayloadCache):
    """A cache that stores nothing.

    Example::

        client = APIClient("https://api.example.com", cache=NullCache())
    """

    def read(self, key: str, response_type: Any = Any) -> None:
        return None

    def write(self, payload: Any, key: str) -> bool:
        return False

    def invalidate(self, key: str) -> None:
        pass

    def clear_all(self) -> None:
        pass
