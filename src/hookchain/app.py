"""The ``hookchain`` command line.

``hookchain request`` sends an HTTP request through the plugin lifecycle.
``hookchain plugins`` and ``hookchain errors`` describe what is installed
and what can fail. ``hookchain config`` edits the stored defaults.

:func:`main` is the console script. Failures surface as
:class:`~hookchain.exceptions.HookchainError` subclasses; each is reported
through :func:`~hookchain.output.print_error` and becomes the process exit
code listed by ``hookchain errors``.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from hookchain import __version__
from hookchain.commands.config import config_app
from hookchain.commands.errors import errors_command
from hookchain.commands.plugins import plugins_command
from hookchain.commands.request import request_command
from hookchain.exceptions import ConfigError, HookchainError
from hookchain.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE
from hookchain.output import OutputFormat, OutputManager, print_error, set_output

app = typer.Typer(
    name="hookchain",
    help="Run tasks and HTTP requests through a chain of plugin hooks.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("request")(request_command)
app.command("plugins")(plugins_command)
app.command("errors")(errors_command)
app.add_typer(config_app, name="config", help="Show or edit the stored defaults.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"hookchain {__version__}")
        raise typer.Exit()


def _resolve_format(json_output: bool, plain_output: bool) -> OutputFormat:
    """``--json`` and ``--plain`` win over the stored ``output.format``."""
    if json_output:
        return OutputFormat.JSON
    if plain_output:
        return OutputFormat.PLAIN

    from hookchain.config import load_global_config

    stored = load_global_config().output.format
    try:
        return OutputFormat(stored)
    except ValueError:
        raise ConfigError(
            f"Invalid output.format {stored!r}, expected one of: "
            + ", ".join(f.value for f in OutputFormat)
        ) from None


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print results as plain text."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print results and errors."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show hook and request debug logging."
    ),
) -> None:
    """Install the output manager and, with ``--verbose``, debug logging."""
    fmt = _resolve_format(json_output, plain_output)
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        _configure_logging()


def _configure_logging() -> None:
    """Send debug log records (hook runs, retries, aborts) to stderr."""
    logging.basicConfig(
        level=logging.DEBUG,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def main(argv: Optional[list[str]] = None) -> None:
    """Console-script entry point. Always exits through :class:`SystemExit`."""
    _setup_signal_handlers()
    try:
        app(args=argv)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except HookchainError as exc:
        print_error(exc)
        sys.exit(exc.exit_code)
    except Exception as exc:
        print_error(exc)
        sys.exit(EXIT_GENERIC_FAILURE)
