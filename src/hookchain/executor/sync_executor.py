"""Synchronous executor: runs a plain function through the plugin lifecycle.

The call never suspends. Hooks and the task run on the calling thread in
this order::

    before hooks -> exec hooks -> task -> success hooks
           \\___________ any exception ___________/
                            |
                       error hooks -> raise

See Also:
    :class:`~hookchain.executor.async_executor.AsyncExecutor` for the
    awaitable equivalent with identical ordering rules.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional, Sequence, TypeVar, Union

from hookchain.exceptions import ExecutorError, InvalidTaskError
from hookchain.executor.base import BasePluginExecutor
from hookchain.executor.context import ExecutorContext
from hookchain.plugins.hooks import HookNames, run_exec_hook, run_plugins_hook, run_plugins_hooks

logger = logging.getLogger(__name__)

R = TypeVar("R")

SyncTask = Callable[[ExecutorContext], R]


class SyncExecutor(BasePluginExecutor):
    """Executor for synchronous tasks and synchronous plugin hooks.

    Example::

        executor = SyncExecutor()
        executor.use(UppercasePlugin())
        executor.exec({"name": "ada"}, lambda ctx: ctx.parameters["name"])
    """

    error_id = "UNKNOWN_SYNC_ERROR"
    invalid_task_message = "Task must be a function!"

    def run_hooks(
        self,
        plugins: Sequence[Any],
        hook_names: HookNames,
        context: Optional[ExecutorContext] = None,
        *args: Any,
    ) -> Any:
        """Run *hook_names* across *plugins* and return the last non-``None`` result.

        Exposed for advanced use and tests. A throwaway context with empty
        parameters is created when *context* is omitted.
        """
        if context is None:
            context = self.create_context({})
        return run_plugins_hooks(plugins, hook_names, context, *args)

    def exec(self, parameters_or_task: Any, task: Optional[SyncTask] = None) -> Any:
        """Run *task* through the before, exec and success phases.

        Call as ``exec(task)`` or ``exec(parameters, task)``.

        Returns:
            The task result after success hooks transformed it.

        Raises:
            InvalidTaskError: If the task is not a plain (non-async) callable.
            ExecutorError: If the task or a hook failed and no error hook
                substituted another exception.
        """
        parameters, actual_task = self._split_arguments(parameters_or_task, task)
        if not callable(actual_task) or inspect.iscoroutinefunction(actual_task):
            raise InvalidTaskError(self.invalid_task_message)

        return self._run(self.create_context(parameters), actual_task)

    def exec_no_error(
        self, parameters_or_task: Any, task: Optional[SyncTask] = None
    ) -> Union[Any, ExecutorError]:
        """Like :meth:`exec`, but return the failure as an :class:`ExecutorError`."""
        try:
            return self.exec(parameters_or_task, task)
        except Exception as error:
            return self._to_executor_error(error)

    def _run_exec(self, context: ExecutorContext, task: SyncTask) -> Any:
        outcome = run_exec_hook(self.plugins, self.get_exec_hook(), context, task)
        result = outcome(context) if callable(outcome) else outcome
        context.set_return_value(result)
        return result

    def _run(self, context: ExecutorContext, task: SyncTask) -> Any:
        try:
            run_plugins_hooks(self.plugins, self.get_before_hooks(), context)
            self._run_exec(context, task)
            run_plugins_hooks(self.plugins, self.get_after_hooks(), context)
            return context.return_value
        except Exception as error:
            raise self._handle_error(context, error)

    def _handle_error(self, context: ExecutorContext, error: Exception) -> BaseException:
        logger.debug("Task failed, running error hooks: %s", error)
        context.set_error(error)
        run_plugins_hook(
            self.plugins,
            self.get_error_hook(),
            context,
            on_return=self._error_replacer(context),
        )
        return self._finalize_error(context, error)
