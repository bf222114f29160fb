"""Cache commands -- inspect and empty the on-disk response cache.

Provides the ``httpstash cache`` sub-command group. Every command builds
the same :class:`~httpstash.cache.ObjectCache` the ``get``/``post``
commands use (resolved from settings, never cleared on construction) and
operates on its namespace only.
"""

from __future__ import annotations

import typer

from httpstash.cache import ObjectCache, PayloadCache
from httpstash.config import resolve_settings
from httpstash.exceptions import HttpstashError
from httpstash.output import error, format_response, info, print_table, success

cache_app = typer.Typer(no_args_is_help=True)


def open_cache(ctx: typer.Context) -> PayloadCache:
    """Build the CLI's cache from resolved settings.

    Raises:
        typer.Exit: With the error's exit code if settings are invalid.
    """
    base_url = ctx.obj.get("base_url") if ctx.obj else None
    try:
        settings = resolve_settings(cli_base_url=base_url)
    except HttpstashError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    # Entries must survive between CLI invocations.
    settings.cache.clear_on_init = False
    return ObjectCache.from_config(settings.cache)


@cache_app.command("info")
def cache_info(ctx: typer.Context) -> None:
    """Show the cache directory, namespace, TTL and entry count.

    Example::

        httpstash cache info
        httpstash --json cache info
    """
    cache = open_cache(ctx)
    try:
        stats = cache.stats()
    finally:
        cache.close()
    if not stats.get("enabled"):
        info("Caching is disabled.")
        format_response(stats)
        return
    print_table(
        ["Setting", "Value"],
        [[key, str(value)] for key, value in stats.items()],
        title="Response cache",
    )


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached entry in the configured namespace."""
    cache = open_cache(ctx)
    try:
        cache.clear_all()
    finally:
        cache.close()
    success("Cache cleared.")


@cache_app.command("invalidate")
def cache_invalidate(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key to drop (usually the request path)."),
) -> None:
    """Remove a single cached entry.

    Example::

        httpstash cache invalidate /users/1
    """
    cache = open_cache(ctx)
    try:
        cache.invalidate(key)
    finally:
        cache.close()
    success(f"Invalidated {key}")
