"""Retry support for async executors.

:class:`RetryManager` holds the retry loop; :class:`RetryPlugin` plugs it
into the exec phase by wrapping the current executable. The wrapper is a
coroutine function, so the plugin is meant for
:class:`~hookchain.executor.AsyncExecutor` and
:class:`~hookchain.executor.LifecycleExecutor`.

Example::

    executor = AsyncExecutor()
    executor.use(RetryPlugin(RetryManager(RetryOptions(max_retries=2))))
    await executor.exec(flaky_task)   # runs at most 3 times
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from hookchain.exceptions import ExecutorError, is_abort_error
from hookchain.executor.context import ExecutorContext
from hookchain.models import RetryOptions
from hookchain.plugins.base import ExecutorPlugin
from hookchain.plugins.hooks import resolve_awaitable

logger = logging.getLogger(__name__)

RETRY_ERROR_ID = "RETRY_ERROR"


class RetryManager:
    """Runs a callable until it succeeds or the retry budget is spent.

    Args:
        options: Retry settings. Defaults to :class:`RetryOptions` defaults
            (3 retries, 1 second apart).
    """

    def __init__(self, options: Optional[RetryOptions] = None) -> None:
        self.options = options or RetryOptions()

    def get_delay(self, retry_number: int) -> float:
        """Seconds to wait before retry number *retry_number* (0-based)."""
        delay = self.options.retry_delay
        if self.options.use_exponential_backoff:
            delay *= 2**retry_number
        return delay

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Decide whether *error* from attempt number *attempt* (1-based) is retried."""
        if is_abort_error(error):
            return False
        predicate = self.options.should_retry
        return predicate is None or bool(predicate(error, attempt))

    async def retry(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Call ``fn(*args)`` up to ``max_retries + 1`` times.

        Awaitable results are awaited. The last error is re-raised when the
        budget runs out or :meth:`should_retry` declines.
        """
        max_retries = self.options.max_retries

        for attempt in range(max_retries + 1):
            try:
                return await resolve_awaitable(fn(*args))
            except Exception as exc:
                if attempt >= max_retries or not self.should_retry(exc, attempt + 1):
                    raise

                delay = self.get_delay(attempt)
                logger.debug(
                    "Attempt failed: %s, retrying in %ss (attempt %d/%d)",
                    exc,
                    delay,
                    attempt + 1,
                    max_retries,
                )
                await asyncio.sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover

    def make_retriable(
        self, fn: Callable[..., Any]
    ) -> Callable[..., Awaitable[Any]]:
        """Return a coroutine function that calls *fn* through :meth:`retry`."""

        async def retriable(*args: Any) -> Any:
            return await self.retry(fn, *args)

        return retriable


class RetryPlugin(ExecutorPlugin):
    """Wrap the exec-phase executable with :class:`RetryManager`.

    When every attempt fails the call fails with
    ``ExecutorError("RETRY_ERROR", "All <plugin_name> retry attempts failed: <msg>")``.
    Abort errors are raised unchanged and never retried.
    """

    only_one = True
    description = "Retries failed tasks with a fixed or exponential delay"

    def __init__(
        self,
        retry_manager: Optional[RetryManager] = None,
        plugin_name: str = "RetryPlugin",
    ) -> None:
        self.retry_manager = retry_manager or RetryManager()
        self.plugin_name = plugin_name

    def on_exec(
        self, context: ExecutorContext, task: Callable[[ExecutorContext], Any]
    ) -> Callable[[ExecutorContext], Awaitable[Any]]:
        retriable = self.retry_manager.make_retriable(task)

        async def run_with_retry(ctx: ExecutorContext) -> Any:
            try:
                return await retriable(ctx)
            except Exception as exc:
                if is_abort_error(exc):
                    raise
                raise ExecutorError(
                    RETRY_ERROR_ID,
                    f"All {self.plugin_name} retry attempts failed: {exc}",
                ) from exc

        return run_with_retry
