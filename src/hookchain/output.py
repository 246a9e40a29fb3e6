"""Terminal rendering for the ``hookchain`` CLI.

Response bodies and tables are written to **stdout**; status lines, errors
and debug traces go to **stderr**, so ``hookchain --json request ... | jq``
always receives clean data.

The active :class:`OutputManager` is installed by
:func:`~hookchain.app.main_callback`. Commands use the module-level helpers
(:func:`print_result`, :func:`print_error`, :func:`info` ...), which look up
that instance through :func:`get_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from hookchain.exceptions import ExecutorError, HookchainError

if TYPE_CHECKING:
    from hookchain.request import RequestResponse


class OutputFormat(str, Enum):
    """Rendering mode for stdout.

    ``AUTO`` becomes ``RICH`` on a colour-capable terminal and ``PLAIN``
    everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders command results on stdout and diagnostics on stderr.

    Args:
        format: Rendering mode for stdout. ``AUTO`` is resolved once, here.
        no_color: Strip colour and markup from both streams.
        quiet: Drop ``info`` and ``success`` lines.
        verbose: Show ``debug`` lines and error details.
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
            rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any, content_type: str = "application/json") -> None:
        """Write a response body to stdout."""
        if self._format == OutputFormat.JSON:
            if isinstance(data, str):
                data = _maybe_json(data)
            if isinstance(data, str):
                self._emit(data)
            else:
                self._emit(_dumps(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self._emit(line)
        else:
            if isinstance(data, str) and "json" in content_type:
                data = _maybe_json(data)
            if isinstance(data, (dict, list)):
                self._stdout.print(Syntax(_dumps(data), "json", theme="monokai", word_wrap=True))
            else:
                self._stdout.print(str(data))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a Rich table, a JSON array of objects, or TSV."""
        if self._format == OutputFormat.JSON:
            self._emit(_dumps([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self._emit("\t".join(row))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def print_result(self, result: RequestResponse) -> None:
        """Report a :class:`~hookchain.request.RequestResponse`.

        The status line goes to stderr; the parsed body, when there is one,
        goes to stdout.
        """
        status = f"HTTP {result.status_code} {result.status_text}".rstrip()
        if result.ok:
            self.info(status)
        else:
            self._diagnostic(status, style="yellow")

        self.debug(f"{len(result.headers)} response headers")
        if result.data is not None:
            content_type = result.headers.get("content-type", "application/json")
            self.format_response(result.data, content_type)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def print_error(self, exc: BaseException) -> None:
        """Report a failure on stderr.

        :class:`~hookchain.exceptions.ExecutorError` is shown with its id.
        With ``verbose`` the exit code and the chained cause follow.
        """
        if isinstance(exc, ExecutorError):
            self.error(f"{exc} ({exc.id})")
        elif isinstance(exc, HookchainError):
            self.error(str(exc))
        else:
            self.error(f"Unexpected error: {exc}")

        if isinstance(exc, HookchainError):
            self.debug(f"{type(exc).__name__}, exit code {exc.exit_code}")
        if exc.__cause__ is not None:
            self.debug(f"caused by {type(exc.__cause__).__name__}: {exc.__cause__}")

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, style="green")

    def error(self, message: str) -> None:
        """Never suppressed, not even by ``quiet``."""
        self._diagnostic(message, prefix="Error:", style="bold red")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(message, prefix="[debug]", style="dim")

    def _diagnostic(self, message: str, prefix: str = "", style: str = "") -> None:
        if self._no_color or not style:
            text = f"{prefix} {message}" if prefix else message
            print(text, file=sys.stderr, flush=True)
        elif prefix:
            self._stderr.print(f"[{style}]{escape(prefix)}[/{style}] {message}")
        else:
            self._stderr.print(f"[{style}]{message}[/{style}]")

    def _emit(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _maybe_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _plain_lines(data: Any) -> list[str]:
    """Dicts become ``key<TAB>value`` lines, lists one line per item."""
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
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


def format_response(data: Any, content_type: str = "application/json") -> None:
    get_output().format_response(data, content_type)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def print_result(result: RequestResponse) -> None:
    get_output().print_result(result)


def print_error(exc: BaseException) -> None:
    get_output().print_error(exc)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
