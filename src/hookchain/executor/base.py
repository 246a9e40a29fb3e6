"""Shared plumbing for all executors: plugin registry, config, error phase.

:class:`BasePluginExecutor` owns the ordered plugin list and the
:class:`~hookchain.models.ExecutorConfig`. Concrete executors
(:class:`~hookchain.executor.sync_executor.SyncExecutor`,
:class:`~hookchain.executor.async_executor.AsyncExecutor`,
:class:`~hookchain.executor.lifecycle.LifecycleExecutor`) add the phase
loop for their calling convention.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from hookchain.exceptions import ExecutorError
from hookchain.executor.context import ExecutorContext
from hookchain.models import DEFAULT_HOOK_ON_ERROR, ExecutorConfig
from hookchain.plugins.base import get_plugin_name

logger = logging.getLogger(__name__)


class BasePluginExecutor:
    """Plugin registry and phase configuration shared by every executor.

    Args:
        config: Hook names for each phase. When omitted, one is built from
            *options*.
        **options: ``before_hooks``, ``after_hooks`` and ``exec_hook``
            overrides, applied on top of *config* when both are given.

    Example::

        executor = SyncExecutor(before_hooks=["validate", "transform"])
        executor.use(ValidatePlugin()).use(TransformPlugin())
    """

    error_id: str = "UNKNOWN_ERROR"
    invalid_task_message: str = "Task must be a function!"

    def __init__(self, config: Optional[ExecutorConfig] = None, **options: Any) -> None:
        if config is None:
            config = ExecutorConfig(**options)
        elif options:
            config = ExecutorConfig(**{**config.model_dump(), **options})
        self.config = config
        self.plugins: list[Any] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def use(self, plugin: Any) -> BasePluginExecutor:
        """Register *plugin* at the end of the chain and return ``self``.

        When a plugin with the same ``plugin_name`` is already registered and
        either of the two has ``only_one`` set (the default), the call is a
        no-op and the first registration is kept.

        ``None`` is not rejected here; the next phase that iterates the
        plugin list raises ``TypeError`` instead.
        """
        if plugin is not None and self._is_duplicate(plugin):
            logger.debug(
                "Plugin '%s' is already registered, ignoring", get_plugin_name(plugin)
            )
            return self

        self.plugins.append(plugin)
        logger.debug("Registered plugin '%s'", get_plugin_name(plugin) if plugin else None)
        return self

    def _is_duplicate(self, plugin: Any) -> bool:
        name = getattr(plugin, "plugin_name", None)
        if not name:
            return False
        for existing in self.plugins:
            if existing is None or getattr(existing, "plugin_name", None) != name:
                continue
            if getattr(existing, "only_one", True) or getattr(plugin, "only_one", True):
                return True
        return False

    # ------------------------------------------------------------------
    # Phase configuration
    # ------------------------------------------------------------------

    def get_before_hooks(self) -> list[str]:
        return self.config.before_hooks

    def get_after_hooks(self) -> list[str]:
        return self.config.after_hooks

    def get_exec_hook(self) -> str:
        return self.config.exec_hook

    def get_error_hook(self) -> str:
        return DEFAULT_HOOK_ON_ERROR

    def create_context(self, parameters: Any) -> ExecutorContext:
        return ExecutorContext(parameters=parameters)

    # ------------------------------------------------------------------
    # Argument handling
    # ------------------------------------------------------------------

    @staticmethod
    def _split_arguments(parameters_or_task: Any, task: Any) -> tuple[Any, Any]:
        """Support both ``exec(task)`` and ``exec(parameters, task)``."""
        if task is None:
            return None, parameters_or_task
        return parameters_or_task, task

    # ------------------------------------------------------------------
    # Error phase helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _error_replacer(context: ExecutorContext) -> Callable[[Any], None]:
        """Build the ``on_return`` callback that lets error hooks substitute the error."""

        def replace(result: Any) -> None:
            if isinstance(result, BaseException):
                context.set_error(result)

        return replace

    def _finalize_error(self, context: ExecutorContext, original: BaseException) -> BaseException:
        """Pick the error the call fails with once the error hooks have run.

        An :class:`ExecutorError` or a hook-substituted exception is used as
        is. An untouched original error is wrapped in :class:`ExecutorError`.
        """
        error = context.error
        if isinstance(error, ExecutorError) or (error is not None and error is not original):
            return error

        wrapped = ExecutorError(self.error_id, original)
        context.set_error(wrapped)
        return wrapped

    def _to_executor_error(self, error: BaseException) -> ExecutorError:
        if isinstance(error, ExecutorError):
            return error
        return ExecutorError(self.error_id, error)
