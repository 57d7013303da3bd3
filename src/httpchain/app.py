"""Typer application and CLI entry point for httpchain.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``request`` and ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs signal handlers and invokes the Typer app.
:class:`~httpchain.exceptions.HttpChainError` and transport errors exit
with their mapped exit code; any other exception is written to a crash log
under the data directory.

See Also:
    :mod:`httpchain.config`: Profile and global configuration resolution.
    :mod:`httpchain.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler

from httpchain import __version__
from httpchain.commands.config import config_app
from httpchain.commands.request import request_command
from httpchain.exit_codes import EXIT_CONNECTION_ERROR, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="httpchain",
    help="Send HTTP requests through a configured httpchain client.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("request")(request_command)
app.add_typer(config_app, name="config", help="Client profile management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"httpchain {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, console: Console) -> None:
    """Route the ``httpchain`` loggers to stderr through Rich when verbose."""
    logger = logging.getLogger("httpchain")
    for handler in list(logger.handlers):
        if getattr(handler, "_httpchain_managed", False):
            logger.removeHandler(handler)

    if not verbose:
        logger.setLevel(logging.WARNING)
        return

    handler = RichHandler(console=console, show_path=False, markup=False)
    handler._httpchain_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


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
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Client profile to use."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every request at debug level."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~httpchain.output.OutputManager` and the
    ``httpchain`` loggers from CLI flags, and stores shared options in the
    Typer context so sub-commands can read them via ``ctx.obj``.
    """
    from httpchain.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    _configure_logging(verbose, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from httpchain.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``httpchain`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
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
        from httpchain.exceptions import HttpChainError
        from httpchain.output import error

        if isinstance(exc, HttpChainError):
            error(str(exc))
            sys.exit(exc.exit_code)
        elif isinstance(exc, httpx.TransportError):
            error(f"Connection failed: {exc}")
            sys.exit(EXIT_CONNECTION_ERROR)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
