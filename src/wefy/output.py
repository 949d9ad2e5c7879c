"""CLI output with strict stdout/stderr discipline.

* **stdout** -- response bodies, merged headers, config dumps. This is
  what downstream tools pipe and parse.
* **stderr** -- status lines, warnings, errors and log records.
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb`` and the
  ``--no-color`` flag.

:class:`OutputManager` holds the preferences and both Rich consoles. The
CLI callback installs one with :func:`set_output`; commands fetch it with
:func:`get_output`. Library code never writes here -- it logs through
:mod:`logging`, and :meth:`OutputManager.install_log_handler` routes those
records to stderr when the CLI asks for it.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported output formats. ``AUTO`` picks ``RICH`` on a colour TTY, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes CLI output to stdout (data) or stderr (diagnostics).

    Args:
        format: Desired output format.
        no_color: Disable colour and Rich markup.
        quiet: Suppress informational messages on stderr.
        verbose: Show debug messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Print a decoded response body to stdout in the active format.

        ``None`` prints nothing. ``bytes`` are written as UTF-8 text with
        replacement characters since a terminal can't show them raw.
        """
        if data is None:
            return
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")

        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN:
            if isinstance(data, (dict, list)):
                self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
            else:
                self.print_data(str(data))
        elif isinstance(data, (dict, list)):
            text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data), markup=False, highlight=False)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    def print_headers(self, headers: list[tuple[str, str]]) -> None:
        """Print header entries as ``Name: value`` lines (or a JSON array of pairs)."""
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps([list(pair) for pair in headers], indent=2))
            return
        for name, value in headers:
            self.print_data(f"{name}: {value}")

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a Rich table, a JSON array of objects or TSV."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Informational line on stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diag(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diag(message, f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Warning on stderr. Not suppressed by ``--quiet``."""
        self._diag(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Error on stderr. Never suppressed."""
        self._diag(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def debug(self, message: str) -> None:
        """Debug line on stderr, only with ``--verbose``."""
        if self._verbose:
            self._diag(f"[debug] {message}", f"[dim]\\[debug] {message}[/dim]")

    def install_log_handler(self, level: int = logging.INFO) -> logging.Handler:
        """Route records of the ``wefy`` logger hierarchy to stderr.

        Returns:
            The installed handler, so callers can remove it again.
        """
        handler: logging.Handler
        if self._no_color:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        else:
            handler = RichHandler(console=self._stderr, show_path=False, show_time=False)
        handler.setLevel(level)
        root = logging.getLogger("wefy")
        root.addHandler(handler)
        root.setLevel(min(level, root.level or level))
        return handler

    def _diag(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the global :class:`OutputManager`. Used by the test suite."""
    global _output
    _output = None
