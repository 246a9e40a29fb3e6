"""``hookchain plugins`` -- list plugins discovered through entry points."""

from __future__ import annotations

from hookchain.output import info, print_table


def plugins_command() -> None:
    """List plugins registered in the ``hookchain.plugins`` entry-point group.

    Honours the ``plugins.enabled`` / ``plugins.disabled`` lists of the
    effective configuration.

    Example::

        hookchain plugins
        hookchain --json plugins
    """
    from hookchain.config import resolve_config
    from hookchain.plugins.manager import PluginManager

    manager = PluginManager()
    manager.discover(resolve_config())
    plugins = manager.list_plugins()
    manager.cleanup()

    if not plugins:
        info("No plugins found.")
        return

    rows = [
        [p["name"], p["plugin_name"], p["version"], p["description"]] for p in plugins
    ]
    print_table(["Name", "Plugin name", "Version", "Description"], rows, title="Plugins")
