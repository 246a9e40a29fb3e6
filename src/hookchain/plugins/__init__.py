"""Plugin system for hookchain -- contract, hook runner, and discovery.

Any object with a ``plugin_name`` attribute is a plugin. Executors look up
its hook methods by name when a phase runs and call them in registration
order. Third-party packages can also ship plugins as entry points in the
``hookchain.plugins`` group; :class:`PluginManager` discovers and loads
them.

Key names:

* :class:`ExecutorPlugin` -- Optional base class with default identity
  attributes.
* :func:`run_plugins_hook` / :func:`run_plugins_hooks` -- The hook-phase
  runner executors are built on (plus ``_async`` twins).
* :class:`PluginManager` -- Discovers, loads, and applies plugins.

Bundled plugins live in :mod:`hookchain.plugins.retry` and
:mod:`hookchain.plugins.abort`.

Example:
    Registering discovered plugins on an executor::

        from hookchain.plugins import PluginManager

        manager = PluginManager()
        manager.discover(global_config)
        manager.apply(executor)
"""

from hookchain.plugins.base import ExecutorPlugin, get_plugin_name
from hookchain.plugins.hooks import (
    ExecOutcome,
    run_exec_hook,
    run_exec_hook_async,
    run_plugins_hook,
    run_plugins_hook_async,
    run_plugins_hooks,
    run_plugins_hooks_async,
)
from hookchain.plugins.manager import PluginManager

__all__ = [
    "ExecOutcome",
    "ExecutorPlugin",
    "PluginManager",
    "get_plugin_name",
    "run_exec_hook",
    "run_exec_hook_async",
    "run_plugins_hook",
    "run_plugins_hook_async",
    "run_plugins_hooks",
    "run_plugins_hooks_async",
]
