"""Last-write timestamps for cache entries.

:class:`ExpiryStore` is a small persistent map from entry name
(``<namespace><sanitized key>``) to the epoch time the entry was last
written. It lives apart from the payload files because timestamps are tiny
and consulted on every read, while payloads are large and read only on a
hit.

The store is backed by a :class:`diskcache.Cache` directory, which is safe
to open from several :class:`ExpiryStore` instances (and processes) at
once. Instances are opened and closed explicitly; nothing here is a
module-level singleton.
"""

from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import Optional, Union

import diskcache

#: Failures the backing store can raise: sqlite errors (locked or corrupt
#: database), diskcache lock timeouts and filesystem errors.
STORE_ERRORS = (sqlite3.Error, diskcache.Timeout, OSError)


class ExpiryStore:
    """Persistent ``entry name -> last write time`` mapping.

    Args:
        directory: Directory holding the store's database files. Created
            if missing.

    Example::

        with ExpiryStore(tmp_path / "expiry") as store:
            store.record_write("httpstash_users")
            store.last_write("httpstash_users")  # -> 1760800000.123
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self._directory = Path(directory)
        self._store: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def record_write(self, name: str, timestamp: Optional[float] = None) -> None:
        """Store *timestamp* (default: now) as the last write time of *name*."""
        self._require_open().set(name, time.time() if timestamp is None else timestamp)

    def last_write(self, name: str) -> Optional[float]:
        """Return the last write time of *name*, or ``None`` if never recorded."""
        value = self._require_open().get(name)
        if value is None:
            return None
        return float(value)

    def forget(self, name: str) -> None:
        """Remove the record for *name*. Missing names are ignored."""
        self._require_open().delete(name)

    def names(self, prefix: str = "") -> list[str]:
        """Return every recorded name starting with *prefix*."""
        return [
            key for key in self._require_open().iterkeys()
            if isinstance(key, str) and key.startswith(prefix)
        ]

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice."""
        if self._store is not None:
            self._store.close()
            self._store = None

    def __enter__(self) -> ExpiryStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _require_open(self) -> diskcache.Cache:
        if self._store is None:
            raise RuntimeError(f"ExpiryStore at {self._directory} is closed")
        return self._store
