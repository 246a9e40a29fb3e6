"""Numeric process exit codes used by the ``hookchain`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~hookchain.exceptions.HookchainError` subclass.
Shell wrappers can inspect the exit code to learn the failure class
without parsing stderr.

Example::

    $ hookchain request GET https://api.example.com/missing
    $ echo $?
    5   # EXIT_REQUEST_ERROR -- the server answered with a 4xx/5xx status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments, or a task was not callable."""

EXIT_REQUEST_ERROR = 5
"""An HTTP request failed or the server returned an error status."""

EXIT_EXECUTOR_ERROR = 8
"""A task or hook failed and no error hook recovered it."""

EXIT_ABORTED = 9
"""The operation was aborted or timed out."""

EXIT_PLUGIN_ERROR = 10
"""A plugin failed to load, initialise, or register."""

EXIT_CANCELLED = 130
"""The user interrupted the command with Ctrl-C (128 + SIGINT)."""
