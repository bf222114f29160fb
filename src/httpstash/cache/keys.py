"""Cache key sanitisation.

A cache key is whatever string the caller hands to the cache (usually a
request path such as ``/users/1?expand=posts``). :func:`sanitize_key`
turns it into a token safe to use as a file name. The same function names
both the payload file and the expiry record, so the two always agree.

Distinct keys can collide after substitution (``a/b`` and ``a:b`` both
become ``a_b``). Keys are not hashed so that file names stay readable;
callers that need to tell such keys apart should pass an explicit
``cache_key``.
"""

from __future__ import annotations

import re

UNSAFE_CHARACTERS = '/\\:*?"<>|&'

_UNSAFE_RE = re.compile("[" + re.escape(UNSAFE_CHARACTERS) + "]")


def sanitize_key(key: str) -> str:
    """Replace every filesystem-unsafe character in *key* with ``_``.

    Example::

        >>> sanitize_key("api/users/1?include=posts&format=json")
        'api_users_1_include=posts_format=json'
    """
    return _UNSAFE_RE.sub("_", key)
