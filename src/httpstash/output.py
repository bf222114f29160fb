"""CLI output for httpstash: payloads on stdout, diagnostics on stderr.

Decoded response payloads and cache listings are the only things written
to stdout, so ``httpstash get /users --json | jq`` always sees clean JSON.
Status lines, errors and debug output go to stderr.

The rendering mode is picked once per process:

* ``--json`` -- payloads as indented JSON, tables as arrays of objects.
* ``--plain`` -- tab-separated lines, easy to ``cut`` and ``awk``.
* neither -- Rich syntax highlighting and tables on an interactive
  terminal, plain text when piped. ``NO_COLOR``, ``TERM=dumb`` and
  ``--no-color`` all force plain text.

:class:`OutputManager` is built in :func:`~httpstash.app.main_callback`
and installed with :func:`set_output`; commands use the module-level
helpers (:func:`format_response`, :func:`error`, ...). With ``--verbose``
the manager also hands the ``httpstash`` logger a
:class:`rich.logging.RichHandler`, so cache hits, misses and retries show
up on stderr.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

_LIBRARY_LOGGER = "httpstash"


class OutputFormat(str, Enum):
    """Rendering modes. ``AUTO`` is resolved to ``RICH`` or ``PLAIN`` on construction."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders payloads and diagnostics for one CLI invocation.

    Args:
        format: Requested mode; ``AUTO`` picks Rich on a colour-capable TTY.
        no_color: Force plain, markup-free output.
        quiet: Drop ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages and library logging.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._plain_text = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(format, self._plain_text)

        rich_stdout = self._format == OutputFormat.RICH
        self._out = Console(file=sys.stdout, no_color=self._plain_text, force_terminal=rich_stdout)
        self._err = Console(file=sys.stderr, no_color=self._plain_text, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Write a decoded payload to stdout."""
        if self._format == OutputFormat.JSON:
            self.print_data(_dumps(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            self._out.print(Syntax(_dumps(data), "json", theme="monokai", word_wrap=True))
        else:
            self._out.print(str(data))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows to stdout: JSON records, tab-separated lines, or a Rich table."""
        if self._format == OutputFormat.JSON:
            self.print_data(_dumps([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for row in (headers, *rows):
                self.print_data("\t".join(row))
            return
        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._out.print(table)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, style="green")

    def error(self, message: str) -> None:
        """Never suppressed, not even by ``--quiet``."""
        self._diagnostic(message, label="Error:", style="bold red")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(message, label="[debug]", style="dim")

    def configure_logging(self) -> None:
        """Attach (or detach) the stderr log handler on the ``httpstash`` logger.

        Safe to call repeatedly: handlers installed by an earlier manager
        are removed first.
        """
        logger = logging.getLogger(_LIBRARY_LOGGER)
        for existing in [h for h in logger.handlers if isinstance(h, RichHandler)]:
            logger.removeHandler(existing)
        if not self._verbose:
            return
        handler = RichHandler(
            console=self._err,
            level=logging.DEBUG,
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

    def _diagnostic(self, message: str, label: str = "", style: str = "") -> None:
        if self._plain_text:
            text = f"{label} {message}" if label else message
            print(text, file=sys.stderr, flush=True)
            return
        if label:
            # Escape the opening bracket so "[debug]" is not read as markup.
            shown = label.replace("[", "\\[")
            self._err.print(f"[{style}]{shown}[/{style}] {message}")
        elif style:
            self._err.print(f"[{style}]{message}[/{style}]")
        else:
            self._err.print(message)


def _resolve_format(requested: OutputFormat, plain_text: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not plain_text:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


def _plain_lines(data: Any) -> list[str]:
    """Flatten a payload to tab-separated lines."""
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` disables colour."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(
    headers: Sequence[str], rows: Sequence[Sequence[str]], title: Optional[str] = None
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
