"""Executors that run a task through an ordered chain of plugin hooks."""

from hookchain.exceptions import ExecutorError
from hookchain.executor.async_executor import AsyncExecutor
from hookchain.executor.base import BasePluginExecutor
from hookchain.executor.context import ExecutorContext, HookRuntimes
from hookchain.executor.lifecycle import LifecycleExecutor
from hookchain.executor.sync_executor import SyncExecutor

__all__ = [
    "AsyncExecutor",
    "BasePluginExecutor",
    "ExecutorContext",
    "ExecutorError",
    "HookRuntimes",
    "LifecycleExecutor",
    "SyncExecutor",
]
