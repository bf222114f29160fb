"""Typer application and CLI entry point for httpstash.

Commands:

- ``httpstash get PATH`` -- fetch a resource through the cache.
- ``httpstash post PATH --body JSON`` -- send a JSON body through the cache.
- ``httpstash cache info|clear|invalidate`` -- manage the on-disk cache.

Settings come from :func:`~httpstash.config.resolve_settings`. Request
failures are printed to stderr and the process exits with the error's
``exit_code`` (see :mod:`httpstash.exit_codes`).
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Awaitable, List, Optional

import typer

from httpstash import __version__
from httpstash.exit_codes import EXIT_INVALID_USAGE

app = typer.Typer(
    name="httpstash",
    help="Fetch JSON APIs through a persistent on-disk response cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from httpstash.commands.cache import cache_app  # noqa: E402

app.add_typer(cache_app, name="cache", help="Inspect and clear the response cache.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"httpstash {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-b", help="API base URL (overrides settings and env)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback: set up output and store shared options on ``ctx.obj``."""
    from httpstash.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    output.configure_logging()
    set_output(output)

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Request commands
# ------------------------------------------------------------------ #


def _parse_params(raw: Optional[List[str]]) -> dict[str, str]:
    """Turn repeated ``--param key=value`` options into a dict."""
    params: dict[str, str] = {}
    for item in raw or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {item!r}", param_hint="--param")
        params[key] = value
    return params


def _parse_body(body: str) -> Any:
    """Parse *body* as JSON, exiting with a usage error when it is not."""
    from httpstash.output import error

    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        error(f"--body must be valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)


def _run_request(ctx: typer.Context, call: Any) -> None:
    """Open a client from settings, await ``call(client)`` and print the result.

    Cache entries persist between invocations: the CLI never clears the
    namespace on start-up.
    """
    from httpstash.client import APIClient
    from httpstash.config import resolve_settings
    from httpstash.exceptions import HttpstashError
    from httpstash.output import debug, error, format_response

    async def _go() -> Any:
        settings = resolve_settings(cli_base_url=ctx.obj.get("base_url"))
        settings.cache.clear_on_init = False
        debug(f"Base URL: {settings.base_url}, cache TTL: {settings.cache.ttl_seconds}s")
        async with APIClient.from_config(settings) as client:
            result: Awaitable[Any] = call(client)
            return await result

    try:
        data = asyncio.run(_go())
    except HttpstashError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    format_response(data)


@app.command("get")
def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Resource path, appended to the base URL."),
    param: Optional[List[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as key=value (repeatable)."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Invalidate the cached entry before fetching."
    ),
    cache_key: Optional[str] = typer.Option(
        None, "--cache-key", help="Cache key to use instead of the path."
    ),
) -> None:
    """Fetch PATH, serving it from the cache while the entry is fresh.

    Example::

        httpstash -b https://api.example.com get /users/1
        httpstash get /users --param page=2 --cache-key "/users?page=2"
    """
    params = _parse_params(param)
    _run_request(
        ctx,
        lambda client: client.get(
            path, params=params or None, invalidate_cache=refresh, cache_key=cache_key
        ),
    )


@app.command("post")
def post_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Resource path, appended to the base URL."),
    body: str = typer.Option(..., "--body", "-d", help="JSON request body."),
    param: Optional[List[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as key=value (repeatable)."
    ),
    cache_key: Optional[str] = typer.Option(
        None, "--cache-key", help="Cache key to use instead of the path."
    ),
) -> None:
    """Send a JSON body to PATH. The response is cached under PATH like a GET.

    Example::

        httpstash post /search --body '{"q": "cache"}'
    """
    params = _parse_params(param)
    payload = _parse_body(body)
    _run_request(
        ctx,
        lambda client: client.post(path, payload, params=params or None, cache_key=cache_key),
    )


def main() -> None:
    """Console-script entry point declared in ``pyproject.toml``.

    Unhandled :class:`~httpstash.exceptions.HttpstashError` instances cause
    a clean exit with the error's ``exit_code``.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    from httpstash.exceptions import HttpstashError
    from httpstash.output import error

    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except HttpstashError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
