"""Convenience base class for hookchain plugins.

The plugin contract is duck-typed: any object with a ``plugin_name``
attribute can be registered with an executor's ``use``, and its hooks are
looked up by name when a phase runs. :class:`ExecutorPlugin` only supplies
sensible defaults for the identity attributes. It deliberately defines no
hook methods, because an executor treats the mere presence of a hook (for
example ``on_exec``) as meaningful.

Hook signatures:

* ``on_before(context)``, ``on_success(context)``, ``on_error(context)``,
  ``on_finally(context)`` and any custom-named hook: ``(context) -> value | None``.
* ``on_exec(context, task)``: returns ``None`` (leave the task alone), a
  plain value (replaces the result), or a callable wrapping *task*.
* ``enabled(hook_name, context)``: optional gate; returning ``False``
  skips the hook for this invocation.

Example:
    A plugin that validates input and shapes the result::

        class TrimPlugin(ExecutorPlugin):
            plugin_name = "trim"

            def on_before(self, context):
                if not context.parameters.get("text"):
                    raise ValueError("text is required")

            def on_success(self, context):
                context.set_return_value(context.return_value.strip())
"""

from __future__ import annotations

from typing import Any


class ExecutorPlugin:
    """Base class for plugins that want default identity attributes.

    Subclasses that do not set ``plugin_name`` get their class name.

    Attributes:
        plugin_name: Identity used for dedup and diagnostics.
        only_one: When ``True`` (default), a second plugin registered under
            the same name is ignored.
        version: Plugin version string shown by ``hookchain plugins``.
        description: One-line description shown by ``hookchain plugins``.
    """

    plugin_name: str = "ExecutorPlugin"
    only_one: bool = True
    version: str = "0.1.0"
    description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "plugin_name" not in cls.__dict__:
            cls.plugin_name = cls.__name__

    def __repr__(self) -> str:
        return f"<{type(self).__name__} plugin_name={self.plugin_name!r}>"


def get_plugin_name(plugin: Any) -> str:
    """Return *plugin*'s ``plugin_name``, falling back to its class name."""
    name = getattr(plugin, "plugin_name", None)
    return name if name else type(plugin).__name__
