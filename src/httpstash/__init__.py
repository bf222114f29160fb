"""httpstash -- an async HTTP client that caches decoded responses on disk.

Responses fetched with :class:`~httpstash.client.APIClient` are decoded
into the type the caller asks for and written to a file-backed
:class:`~httpstash.cache.ObjectCache` with a time-to-live. Later requests
for the same key are served from disk until the entry goes stale or is
invalidated.

Typical usage::

    from httpstash import APIClient

    async with APIClient("https://api.example.com") as client:
        users = await client.get("/users", list[User])

Modules:
    app: Typer CLI entry point.
    cache: Object cache, expiry store, key sanitiser, JSON codec.
    client: Request pipeline, request builder, status validation.
    auth: Authentication header providers.
    config: XDG-aware settings and credential resolution.
    exceptions: Error taxonomy with exit-code mapping.
    models: Pydantic configuration models.
    output: stdout/stderr formatting for the CLI.
"""

__version__ = "0.1.0"

from httpstash.cache import NullCache, ObjectCache  # noqa: E402
from httpstash.client import APIClient  # noqa: E402

__all__ = ["APIClient", "NullCache", "ObjectCache", "__version__"]
