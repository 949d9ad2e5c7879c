"""Typer application and CLI entry point for wefy.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. The root callback installs the global
:class:`~wefy.output.OutputManager`; sub-commands live in
:mod:`wefy.commands`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any

import typer

from wefy import __version__
from wefy.commands.config import config_app
from wefy.commands.extensions import extensions_app
from wefy.commands.headers import headers_app
from wefy.commands.request import request_command
from wefy.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="wefy",
    help="HTTP client with lifecycle extensions and header reconciliation.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("request")(request_command)
app.add_typer(headers_app, name="headers", help="Header merging tools.")
app.add_typer(config_app, name="config", help="Configuration management.")
app.add_typer(extensions_app, name="extensions", help="Entry-point extensions.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wefy {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command; installs the output manager."""
    from wefy.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``wefy`` console script.

    Unhandled :class:`~wefy.exceptions.WefyError` instances exit with the
    error's ``exit_code``; anything else exits with a generic failure.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from wefy.exceptions import WefyError
        from wefy.output import get_output

        if isinstance(exc, WefyError):
            get_output().error(exc.message)
            sys.exit(exc.exit_code)
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
