"""Exception hierarchy for hookchain.

All exceptions inherit from :class:`HookchainError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`hookchain.exit_codes`.
The CLI entry point :func:`hookchain.app.main` catches ``HookchainError``
and exits with the matching code.

Subclass hierarchy::

    HookchainError (exit 1)
    +-- InvalidTaskError   (exit 2)
    +-- PluginError        (exit 10)
    +-- ConfigError        (exit 1)
    +-- ExecutorError      (exit 8)
        +-- AbortError     (exit 9)
        +-- RequestError   (exit 5)

:class:`ExecutorError` is the uniform wrapper executors raise (or return,
from ``exec_no_error``) when a task or hook fails and no error hook
supplied a replacement.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from hookchain.exit_codes import (
    EXIT_ABORTED,
    EXIT_EXECUTOR_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PLUGIN_ERROR,
    EXIT_REQUEST_ERROR,
)


class HookchainError(Exception):
    """Base exception for all hookchain errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str = "", exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidTaskError(HookchainError, TypeError):
    """Raised by ``exec`` when the task is not a callable of the required kind.

    Raised before any phase starts, so error hooks never see it.
    """

    exit_code = EXIT_INVALID_USAGE


class PluginError(HookchainError):
    """Raised when a plugin fails to load or is looked up but not loaded."""

    exit_code = EXIT_PLUGIN_ERROR


class ConfigError(HookchainError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


EXECUTOR_ERROR_NAME = "ExecutorError"


class ExecutorError(HookchainError):
    """Uniform error raised for unhandled task and hook failures.

    The message is taken from *cause*: an exception contributes ``str(cause)``,
    a string is used verbatim, and anything else falls back to *id*. When the
    cause is an exception it is also chained as ``__cause__`` so tracebacks
    show the original failure.

    Args:
        id: Stable identifier of the failure class (e.g.
            ``"UNKNOWN_ASYNC_ERROR"``, ``"RETRY_ERROR"``).
        cause: The original exception, a message string, or ``None``.

    Example::

        try:
            executor.exec(task)
        except ExecutorError as exc:
            print(exc.id, exc)
    """

    exit_code = EXIT_EXECUTOR_ERROR

    def __init__(self, id: str, cause: Any = None):
        if isinstance(cause, BaseException):
            message = str(cause)
        elif isinstance(cause, str):
            message = cause
        else:
            message = ""
        super().__init__(message or id)
        self.id = id
        self.cause: Optional[Any] = cause if cause != message else None
        if isinstance(cause, BaseException):
            self.__cause__ = cause

    @property
    def name(self) -> str:
        """``"ExecutorError"`` for the base class, the class name for subclasses."""
        if type(self) is ExecutorError:
            return EXECUTOR_ERROR_NAME
        return type(self).__name__

    @property
    def message(self) -> str:
        """The resolved error message."""
        return str(self)


ABORT_ERROR_ID = "ABORT_ERROR"


class AbortError(ExecutorError):
    """Raised when an operation is aborted through an abort signal.

    Args:
        message: Why the operation was aborted.
        abort_id: Identifier of the aborted operation, if known.
        timeout: Timeout in seconds when the abort was caused by a timer.
    """

    exit_code = EXIT_ABORTED

    def __init__(
        self,
        message: str = "The operation was aborted",
        abort_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(ABORT_ERROR_ID, message)
        self.abort_id = abort_id
        self.timeout = timeout


def is_abort_error(error: Any) -> bool:
    """Return ``True`` if *error* represents an aborted operation.

    Recognises :class:`AbortError`, any :class:`ExecutorError` carrying the
    ``ABORT_ERROR`` id, and :class:`asyncio.CancelledError`.
    """
    if isinstance(error, AbortError):
        return True
    if isinstance(error, ExecutorError) and error.id == ABORT_ERROR_ID:
        return True
    return isinstance(error, asyncio.CancelledError)


class RequestError(ExecutorError):
    """Raised by the request layer for transport failures and error statuses.

    Args:
        id: One of the :class:`~hookchain.request.plugins.RequestErrorID`
            values.
        cause: Original exception or message.
        status_code: HTTP status code when a response was received.
        response: The :class:`httpx.Response`, when available.
    """

    exit_code = EXIT_REQUEST_ERROR

    def __init__(
        self,
        id: str,
        cause: Any = None,
        status_code: Optional[int] = None,
        response: Any = None,
    ):
        super().__init__(id, cause)
        self.status_code = status_code
        self.response = response
