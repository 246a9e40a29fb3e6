"""Plugin manager -- discovery, loading, and lifecycle management.

This module contains :class:`PluginManager`, which discovers plugins
registered as Python entry points, applies enable/disable filtering from
the global configuration, and registers the loaded plugins on an executor.

The entry-point group used for discovery is ``hookchain.plugins``.
Third-party packages register plugins by declaring an entry point under
this group in their ``pyproject.toml``::

    [project.entry-points."hookchain.plugins"]
    my-plugin = "my_package.plugin:MyPlugin"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, Any, Optional

from hookchain.exceptions import PluginError
from hookchain.models import GlobalConfig
from hookchain.plugins.base import get_plugin_name

if TYPE_CHECKING:
    from hookchain.executor.base import BasePluginExecutor

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "hookchain.plugins"
"""The entry-point group name used for plugin discovery."""


class PluginManager:
    """Discovers, loads, and manages the lifecycle of hookchain plugins.

    The *enabled* and *disabled* lists in
    :class:`~hookchain.models.PluginsConfig` act as an explicit
    allowlist/blocklist. When *enabled* is non-empty only those plugins are
    loaded; otherwise all discovered plugins that are **not** in *disabled*
    are loaded.

    Example::

        manager = PluginManager()
        loaded = manager.discover(global_config)
        manager.apply(LifecycleExecutor())
    """

    def __init__(self) -> None:
        self._plugins: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, config: Optional[GlobalConfig] = None) -> list[str]:
        """Discover and load available plugins via Python entry points.

        Each entry point must resolve to a class (or any callable) that
        builds a plugin when called without arguments.

        Args:
            config: The global configuration whose ``plugins.enabled`` and
                ``plugins.disabled`` lists control which plugins are loaded.

        Returns:
            The entry-point names that were successfully loaded. Plugins
            that fail to load are logged as warnings and skipped.
        """
        config = config or GlobalConfig()
        loaded_names: list[str] = []
        enabled_set = set(config.plugins.enabled)
        disabled_set = set(config.plugins.disabled)

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            name = ep.name

            if enabled_set and name not in enabled_set:
                logger.debug("Plugin '%s' not in enabled list, skipping", name)
                continue
            if name in disabled_set:
                logger.debug("Plugin '%s' is disabled, skipping", name)
                continue

            try:
                plugin_factory = ep.load()
                self.load_plugin(name, plugin_factory(), config)
                loaded_names.append(name)
            except Exception as exc:
                logger.warning("Failed to load plugin '%s': %s", name, exc)

        return loaded_names

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_plugin(
        self, name: str, plugin: Any, config: Optional[GlobalConfig] = None
    ) -> None:
        """Register a single plugin instance under *name*.

        Calls the plugin's optional ``on_init(config)`` first.

        Raises:
            PluginError: If *plugin* is ``None`` or a plugin with the same
                *name* is already loaded.
        """
        if plugin is None:
            raise PluginError(f"Plugin '{name}' resolved to None")
        if name in self._plugins:
            raise PluginError(f"Plugin '{name}' is already loaded")

        on_init = getattr(plugin, "on_init", None)
        if callable(on_init):
            on_init(config or GlobalConfig())
        self._plugins[name] = plugin
        logger.info("Loaded plugin '%s' v%s", name, getattr(plugin, "version", "?"))

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def get_plugin(self, name: str) -> Any:
        """Retrieve a loaded plugin by its registered name.

        Raises:
            PluginError: If no plugin with the given *name* is loaded.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginError(f"Plugin '{name}' is not loaded") from None

    def list_plugins(self) -> list[dict[str, str]]:
        """List all loaded plugins with their metadata.

        Returns:
            One dict per plugin with ``"name"``, ``"plugin_name"``,
            ``"version"`` and ``"description"`` keys.
        """
        return [
            {
                "name": name,
                "plugin_name": get_plugin_name(plugin),
                "version": str(getattr(plugin, "version", "")),
                "description": str(getattr(plugin, "description", "")),
            }
            for name, plugin in self._plugins.items()
        ]

    # ------------------------------------------------------------------
    # Executor integration
    # ------------------------------------------------------------------

    def apply(self, executor: BasePluginExecutor) -> BasePluginExecutor:
        """Register every loaded plugin on *executor*, in load order."""
        for plugin in self._plugins.values():
            executor.use(plugin)
        return executor

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Call each plugin's optional ``cleanup()`` and reset the registry.

        Exceptions from individual plugins are logged so that one plugin's
        failure does not prevent the others from cleaning up.
        """
        for name, plugin in self._plugins.items():
            cleanup = getattr(plugin, "cleanup", None)
            if not callable(cleanup):
                continue
            try:
                cleanup()
            except Exception as exc:
                logger.warning("Error cleaning up plugin '%s': %s", name, exc)
        self._plugins.clear()
