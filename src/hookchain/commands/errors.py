"""``hookchain errors`` -- list the error ids raised by the bundled components."""

from __future__ import annotations

from hookchain.output import print_table


def _known_errors() -> list[tuple[str, type, str]]:
    from hookchain.exceptions import ABORT_ERROR_ID, AbortError, ExecutorError, RequestError
    from hookchain.executor import AsyncExecutor, SyncExecutor
    from hookchain.plugins.retry.plugin import RETRY_ERROR_ID
    from hookchain.request import RequestErrorID

    return [
        (SyncExecutor.error_id, ExecutorError, "SyncExecutor"),
        (AsyncExecutor.error_id, ExecutorError, "AsyncExecutor, LifecycleExecutor"),
        (RETRY_ERROR_ID, ExecutorError, "RetryPlugin"),
        (ABORT_ERROR_ID, AbortError, "AbortPlugin"),
        (RequestErrorID.URL_NONE, RequestError, "RequestAdapter"),
        (RequestErrorID.RESPONSE_NOT_OK, RequestError, "ResponseStatusPlugin"),
        (RequestErrorID.REQUEST_ERROR, RequestError, "ResponseStatusPlugin"),
    ]


def errors_command() -> None:
    """Show each error id with its exception class and CLI exit code.

    Example::

        hookchain errors
        hookchain --json errors | jq '.[] | select(.Id == "RETRY_ERROR")'
    """
    rows = [
        [error_id, cls.__name__, str(cls.exit_code), source]
        for error_id, cls, source in _known_errors()
    ]
    print_table(["Id", "Exception", "Exit code", "Raised by"], rows, title="Errors")
