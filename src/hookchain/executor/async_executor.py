"""Asynchronous executor -- mirrors :class:`~hookchain.executor.sync_executor.SyncExecutor`.

Same phases, same ordering and the same chain-break rules, but every hook
result and the task result are awaited before the next step starts. Hooks
may freely mix plain functions and coroutines.

``exec`` validates the task immediately and returns a coroutine, so an
invalid task raises at call time rather than when awaited::

    executor = AsyncExecutor()
    result = await executor.exec({"id": 1}, fetch_user)
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Coroutine, Optional, Sequence, TypeVar, Union

from hookchain.exceptions import ExecutorError, InvalidTaskError
from hookchain.executor.base import BasePluginExecutor
from hookchain.executor.context import ExecutorContext
from hookchain.plugins.hooks import (
    HookNames,
    resolve_awaitable,
    run_exec_hook_async,
    run_plugins_hook_async,
    run_plugins_hooks_async,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

AsyncTask = Callable[[ExecutorContext], Union[Awaitable[R], R]]


class AsyncExecutor(BasePluginExecutor):
    """Executor for asynchronous tasks and (sync or async) plugin hooks."""

    error_id = "UNKNOWN_ASYNC_ERROR"
    invalid_task_message = "Task must be a async function!"

    async def run_hooks(
        self,
        plugins: Sequence[Any],
        hook_names: HookNames,
        context: Optional[ExecutorContext] = None,
        *args: Any,
    ) -> Any:
        """Async version of :meth:`SyncExecutor.run_hooks`."""
        if context is None:
            context = self.create_context({})
        return await run_plugins_hooks_async(plugins, hook_names, context, *args)

    def exec(
        self, parameters_or_task: Any, task: Optional[AsyncTask] = None
    ) -> Coroutine[Any, Any, Any]:
        """Validate the task and return a coroutine running the full lifecycle.

        Raises:
            InvalidTaskError: Immediately, if the task is not callable.
        """
        parameters, actual_task = self._split_arguments(parameters_or_task, task)
        if not callable(actual_task):
            raise InvalidTaskError(self.invalid_task_message)

        return self._run(self.create_context(parameters), actual_task)

    async def exec_no_error(
        self, parameters_or_task: Any, task: Optional[AsyncTask] = None
    ) -> Union[Any, ExecutorError]:
        """Like :meth:`exec`, but return the failure as an :class:`ExecutorError`."""
        try:
            return await self.exec(parameters_or_task, task)
        except Exception as error:
            return self._to_executor_error(error)

    async def _run_exec(self, context: ExecutorContext, task: AsyncTask) -> Any:
        outcome = await run_exec_hook_async(self.plugins, self.get_exec_hook(), context, task)
        result = await resolve_awaitable(outcome(context) if callable(outcome) else outcome)
        context.set_return_value(result)
        return result

    async def _run(self, context: ExecutorContext, task: AsyncTask) -> Any:
        try:
            await run_plugins_hooks_async(self.plugins, self.get_before_hooks(), context)
            await self._run_exec(context, task)
            await run_plugins_hooks_async(self.plugins, self.get_after_hooks(), context)
            return context.return_value
        except Exception as error:
            raise await self._handle_error(context, error)

    async def _handle_error(self, context: ExecutorContext, error: Exception) -> BaseException:
        logger.debug("Task failed, running error hooks: %s", error)
        context.set_error(error)
        await run_plugins_hook_async(
            self.plugins,
            self.get_error_hook(),
            context,
            on_return=self._error_replacer(context),
        )
        return self._finalize_error(context, error)
