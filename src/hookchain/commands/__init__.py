"""Built-in CLI sub-commands for hookchain.

* :mod:`~hookchain.commands.config` -- view and modify global settings.
* :mod:`~hookchain.commands.plugins` -- list discovered plugins.
* :mod:`~hookchain.commands.errors` -- list error ids and their exit codes.
* :mod:`~hookchain.commands.request` -- send an HTTP request through the
  plugin lifecycle.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or a plain callback function
registered directly on the root app.
"""
