"""``hookchain request`` -- send one HTTP request through the plugin lifecycle.

The request goes through :class:`~hookchain.request.RequestAdapter`, with
every plugin discovered in the ``hookchain.plugins`` entry-point group
registered after the built-in request plugins.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer

from hookchain.output import debug, error, print_result


def _parse_pairs(values: list[str], separator: str, label: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition(separator)
        if not sep or not key.strip():
            error(f"Invalid {label} '{raw}', expected KEY{separator}VALUE")
            raise typer.Exit(code=2)
        pairs[key.strip()] = value.strip()
    return pairs


def _parse_data(data: Optional[str]) -> Any:
    """Parse *data* as JSON if possible, returning the raw string on failure."""
    if data is None:
        return None
    try:
        return json.loads(data)
    except (json.JSONDecodeError, TypeError):
        return data


async def _send(parameters: dict[str, Any], config: Any, plugin_manager: Any) -> Any:
    from hookchain.request import RequestAdapter

    async with RequestAdapter(config.request) as adapter:
        plugin_manager.apply(adapter.executor)
        return await adapter.request(**parameters)


def request_command(
    method: str = typer.Argument(help="HTTP method, e.g. GET or POST."),
    url: str = typer.Argument(help="Absolute URL, or a path joined to the base URL."),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Request header as 'Key: Value'. Repeatable."
    ),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Query parameter as 'key=value'. Repeatable."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body. JSON is sent as application/json."
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the base URL."),
    retries: Optional[int] = typer.Option(
        None, "--retries", help="Retries after the first attempt."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
) -> None:
    """Send an HTTP request and print the response body.

    Example::

        hookchain request GET /users -p page=2
        hookchain request POST https://httpbin.org/post -d '{"name": "ada"}'
    """
    from hookchain.config import resolve_config
    from hookchain.plugins.manager import PluginManager

    config = resolve_config(cli_base_url=base_url, cli_timeout=timeout, cli_retries=retries)
    parameters: dict[str, Any] = {
        "method": method.upper(),
        "url": url,
        "headers": _parse_pairs(header, ":", "header"),
        "params": _parse_pairs(param, "=", "parameter"),
    }
    if data is not None:
        parameters["data"] = _parse_data(data)

    plugin_manager = PluginManager()
    plugin_manager.discover(config)
    debug(f"{parameters['method']} {url}")

    try:
        result = asyncio.run(_send(parameters, config, plugin_manager))
    finally:
        plugin_manager.cleanup()

    print_result(result)
