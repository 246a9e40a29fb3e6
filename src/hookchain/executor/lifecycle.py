"""Async executor with a ``finally`` phase.

:class:`LifecycleExecutor` runs the same before, exec, success and error
phases as :class:`~hookchain.executor.async_executor.AsyncExecutor`, then
always runs the ``on_finally`` hooks once the call has settled. Finally
hooks see the final ``return_value`` or ``error`` on the context; errors
they raise are logged and never change the outcome of the call.

The request layer (:mod:`hookchain.request`) is built on this executor.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from hookchain.executor.async_executor import AsyncExecutor, AsyncTask
from hookchain.executor.context import ExecutorContext
from hookchain.models import DEFAULT_HOOK_ON_FINALLY
from hookchain.plugins.hooks import run_plugins_hooks_async

logger = logging.getLogger(__name__)


class LifecycleExecutor(AsyncExecutor):
    """:class:`AsyncExecutor` plus an ``on_finally`` phase."""

    invalid_task_message = "Task must be a function!"

    def get_finally_hook(self) -> str:
        return DEFAULT_HOOK_ON_FINALLY

    @staticmethod
    def _split_arguments(parameters_or_task: Any, task: Any) -> tuple[Any, Any]:
        if task is None:
            return {}, parameters_or_task
        return parameters_or_task, task

    async def _run(self, context: ExecutorContext, task: AsyncTask) -> Any:
        try:
            return await super()._run(context, task)
        finally:
            await self._run_finally(context)

    async def _run_finally(self, context: ExecutorContext) -> Optional[Any]:
        logger.debug("Running finally hooks")
        return await run_plugins_hooks_async(
            self.plugins,
            self.get_finally_hook(),
            context,
            continue_on_error=True,
        )
