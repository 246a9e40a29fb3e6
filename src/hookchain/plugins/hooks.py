"""Hook-phase runner: invokes one or more named hooks across a plugin list.

This module is the primitive every executor is built on. It provides:

* :func:`run_plugins_hook` / :func:`run_plugins_hook_async` -- run a single
  hook name across all plugins in registration order.
* :func:`run_plugins_hooks` / :func:`run_plugins_hooks_async` -- run an
  ordered list of hook names as one phase.
* :func:`run_exec_hook` / :func:`run_exec_hook_async` -- the exec-phase
  variant that threads the *current executable* through the plugins so
  each ``on_exec`` hook can replace it, wrap it, or leave it alone.

Every single-name run installs a fresh
:class:`~hookchain.executor.context.HookRuntimes` on the context. A hook
that returns ``None`` leaves ``hooks_runtimes.return_value`` untouched;
any other value is recorded there so later hooks of the same run can
build on it.

Hooks run strictly one after another. The async variants await each hook
(and keep awaiting while the result is itself awaitable) before the next
one starts.
"""

from __future__ import annotations

import enum
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Sequence, Union

from hookchain.plugins.base import get_plugin_name

if TYPE_CHECKING:
    from hookchain.executor.context import ExecutorContext

logger = logging.getLogger(__name__)

HookNames = Union[str, Sequence[str]]


class ExecOutcome(enum.Enum):
    """How an ``on_exec`` hook's return value affects the executable chain."""

    UNCHANGED = "unchanged"
    VALUE = "value"
    WRAPPER = "wrapper"


def classify_exec_result(result: Any) -> ExecOutcome:
    """Classify an exec-hook result.

    ``None`` leaves the chain alone, a callable becomes the new wrapper,
    and anything else is a plain value.
    """
    if result is None:
        return ExecOutcome.UNCHANGED
    if callable(result):
        return ExecOutcome.WRAPPER
    return ExecOutcome.VALUE


def normalize_hook_names(hook_names: HookNames) -> list[str]:
    if isinstance(hook_names, str):
        return [hook_names]
    return list(hook_names)


def run_plugin_hook(plugin: Any, hook_name: str, context: ExecutorContext, *args: Any) -> Any:
    """Invoke ``plugin.<hook_name>(context, *args)`` if it exists.

    Returns:
        The hook's result (possibly an awaitable), or ``None`` when the
        plugin has no callable attribute of that name.
    """
    hook = getattr(plugin, hook_name, None)
    if not callable(hook):
        return None
    return hook(context, *args)


def should_skip_plugin_hook(plugin: Any, hook_name: str, context: ExecutorContext) -> bool:
    """Return ``True`` when *plugin* has no such hook or its ``enabled`` gate says no.

    Raises:
        TypeError: If *plugin* is ``None``.
    """
    if plugin is None:
        raise TypeError(f"Cannot run hook '{hook_name}': plugin list contains None")
    if not callable(getattr(plugin, hook_name, None)):
        return True
    enabled = getattr(plugin, "enabled", None)
    return callable(enabled) and enabled(hook_name, context) is False


async def resolve_awaitable(value: Any) -> Any:
    """Await *value* repeatedly until it is no longer awaitable."""
    while inspect.isawaitable(value):
        value = await value
    return value


def _mark_running(context: ExecutorContext, plugin: Any, index: int) -> None:
    runtimes = context.hooks_runtimes
    runtimes.plugin_name = get_plugin_name(plugin)
    runtimes.index = index
    runtimes.times += 1


def _record_result(
    context: ExecutorContext,
    result: Any,
    on_return: Optional[Callable[[Any], None]],
) -> None:
    context.hooks_runtimes.return_value = result
    if on_return is not None:
        on_return(result)


def _handle_hook_error(context: ExecutorContext, plugin: Any, hook_name: str) -> bool:
    """Return ``True`` if the error was logged and the chain should continue."""
    if not context.should_continue_on_error():
        return False
    logger.warning(
        "Hook '%s' of plugin '%s' failed; continuing",
        hook_name,
        get_plugin_name(plugin),
        exc_info=True,
    )
    return True


# ----------------------------------------------------------------------
# Synchronous runner
# ----------------------------------------------------------------------


def run_plugins_hook(
    plugins: Iterable[Any],
    hook_name: str,
    context: ExecutorContext,
    *args: Any,
    on_return: Optional[Callable[[Any], None]] = None,
    continue_on_error: bool = False,
) -> Any:
    """Run *hook_name* on every plugin in order and return the last non-``None`` result.

    Args:
        plugins: Ordered plugins. A ``None`` entry raises ``TypeError``.
        hook_name: Attribute name of the hook to call.
        context: Context passed as the first argument to every hook.
        *args: Extra positional arguments passed after the context.
        on_return: Called with every non-``None`` hook result as soon as
            it is produced.
        continue_on_error: Log exceptions raised by hooks and keep going
            instead of propagating them.

    Returns:
        The value returned by the last hook that returned something, or
        ``None``.
    """
    return_value = None
    context.reset_hooks_runtimes(hook_name, continue_on_error=continue_on_error)

    for index, plugin in enumerate(plugins):
        if context.should_break_chain():
            break
        if should_skip_plugin_hook(plugin, hook_name, context):
            continue

        _mark_running(context, plugin, index)
        try:
            result = run_plugin_hook(plugin, hook_name, context, *args)
        except Exception:
            if _handle_hook_error(context, plugin, hook_name):
                continue
            raise

        if result is not None:
            return_value = result
            _record_result(context, result, on_return)
        if context.should_break_chain_on_return():
            break

    return return_value


def run_plugins_hooks(
    plugins: Sequence[Any],
    hook_names: HookNames,
    context: ExecutorContext,
    *args: Any,
    continue_on_error: bool = False,
) -> Any:
    """Run several hook names as one phase; return the last non-``None`` result."""
    last_return_value = None
    for hook_name in normalize_hook_names(hook_names):
        result = run_plugins_hook(
            plugins, hook_name, context, *args, continue_on_error=continue_on_error
        )
        if result is not None:
            last_return_value = result
        if context.should_break_chain():
            break
    return last_return_value


def run_exec_hook(
    plugins: Iterable[Any],
    hook_name: str,
    context: ExecutorContext,
    task: Callable[[ExecutorContext], Any],
) -> Any:
    """Fold the exec hooks of *plugins* over *task*.

    Each hook receives ``(context, current)`` where ``current`` is the
    executable built so far (initially *task*). A returned callable becomes
    the new ``current``; a plain value replaces the pending result; ``None``
    changes nothing.

    Returns:
        A callable to invoke with the context, or the final plain value.
    """
    current = task
    outcome: Any = task
    context.reset_hooks_runtimes(hook_name)

    for index, plugin in enumerate(plugins):
        if context.should_break_chain():
            break
        if should_skip_plugin_hook(plugin, hook_name, context):
            continue

        _mark_running(context, plugin, index)
        result = run_plugin_hook(plugin, hook_name, context, current)

        kind = classify_exec_result(result)
        if kind is ExecOutcome.WRAPPER:
            current = outcome = result
        elif kind is ExecOutcome.VALUE:
            outcome = result
        if kind is not ExecOutcome.UNCHANGED:
            _record_result(context, result, None)
        if context.should_break_chain_on_return():
            break

    return outcome


# ----------------------------------------------------------------------
# Asynchronous runner
# ----------------------------------------------------------------------


async def run_plugins_hook_async(
    plugins: Iterable[Any],
    hook_name: str,
    context: ExecutorContext,
    *args: Any,
    on_return: Optional[Callable[[Any], None]] = None,
    continue_on_error: bool = False,
) -> Any:
    """Async twin of :func:`run_plugins_hook`; each hook is awaited before the next."""
    return_value = None
    context.reset_hooks_runtimes(hook_name, continue_on_error=continue_on_error)

    for index, plugin in enumerate(plugins):
        if context.should_break_chain():
            break
        if should_skip_plugin_hook(plugin, hook_name, context):
            continue

        _mark_running(context, plugin, index)
        try:
            result = await resolve_awaitable(
                run_plugin_hook(plugin, hook_name, context, *args)
            )
        except Exception:
            if _handle_hook_error(context, plugin, hook_name):
                continue
            raise

        if result is not None:
            return_value = result
            _record_result(context, result, on_return)
        if context.should_break_chain_on_return():
            break

    return return_value


async def run_plugins_hooks_async(
    plugins: Sequence[Any],
    hook_names: HookNames,
    context: ExecutorContext,
    *args: Any,
    continue_on_error: bool = False,
) -> Any:
    """Async twin of :func:`run_plugins_hooks`."""
    last_return_value = None
    for hook_name in normalize_hook_names(hook_names):
        result = await run_plugins_hook_async(
            plugins, hook_name, context, *args, continue_on_error=continue_on_error
        )
        if result is not None:
            last_return_value = result
        if context.should_break_chain():
            break
    return last_return_value


async def run_exec_hook_async(
    plugins: Iterable[Any],
    hook_name: str,
    context: ExecutorContext,
    task: Callable[[ExecutorContext], Any],
) -> Any:
    """Async twin of :func:`run_exec_hook`.

    A hook result that is awaitable is awaited first; the resolved value is
    then classified like a synchronous result.
    """
    current = task
    outcome: Any = task
    context.reset_hooks_runtimes(hook_name)

    for index, plugin in enumerate(plugins):
        if context.should_break_chain():
            break
        if should_skip_plugin_hook(plugin, hook_name, context):
            continue

        _mark_running(context, plugin, index)
        result = await resolve_awaitable(
            run_plugin_hook(plugin, hook_name, context, current)
        )

        kind = classify_exec_result(result)
        if kind is ExecOutcome.WRAPPER:
            current = outcome = result
        elif kind is ExecOutcome.VALUE:
            outcome = result
        if kind is not ExecOutcome.UNCHANGED:
            _record_result(context, result, None)
        if context.should_break_chain_on_return():
            break

    return outcome
