"""hookchain -- run tasks through an ordered chain of pluggable hooks.

An executor wraps a caller-supplied task (sync or async) with plugins that
hook into its lifecycle: ``on_before`` hooks prepare parameters,
``on_exec`` hooks may replace or wrap the task, ``on_success`` hooks shape
the result and ``on_error`` hooks observe or substitute failures.

Typical usage::

    from hookchain import SyncExecutor

    executor = SyncExecutor().use(ValidatePlugin()).use(ShapeResultPlugin())
    result = executor.exec({"id": 42}, load_user)

Modules:
    executor: Sync, async and lifecycle executors plus the execution context.
    plugins: Plugin base class, hook runner, discovery, retry and abort plugins.
    request: HTTP request layer on top of the lifecycle executor.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration with precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from hookchain.exceptions import (  # noqa: E402
    AbortError,
    ExecutorError,
    HookchainError,
    InvalidTaskError,
    RequestError,
)
from hookchain.executor import (  # noqa: E402
    AsyncExecutor,
    BasePluginExecutor,
    ExecutorContext,
    HookRuntimes,
    LifecycleExecutor,
    SyncExecutor,
)
from hookchain.models import ExecutorConfig  # noqa: E402
from hookchain.plugins.base import ExecutorPlugin  # noqa: E402

__all__ = [
    "AbortError",
    "AsyncExecutor",
    "BasePluginExecutor",
    "ExecutorConfig",
    "ExecutorContext",
    "ExecutorError",
    "ExecutorPlugin",
    "HookRuntimes",
    "HookchainError",
    "InvalidTaskError",
    "LifecycleExecutor",
    "RequestError",
    "SyncExecutor",
    "__version__",
]
