"""HTTP request adapter built on :class:`~hookchain.executor.LifecycleExecutor`.

:class:`RequestAdapter` turns a request description (a dict of ``url``,
``method``, ``headers``, ``params``, ``data`` ...) into an
:class:`httpx.AsyncClient` call, with every step exposed as a hook::

    on_before -> on_build_url -> on_inject_headers -> on_serialize_data
        -> on_exec (retry, abort ...) -> send
        -> on_success -> on_parse_response
        -> on_error / on_finally

Example::

    async with RequestAdapter(RequestConfig(base_url="https://api.example.com")) as api:
        result = await api.get("/users", params={"page": 2})
        print(result.status_code, result.data)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from hookchain.exceptions import RequestError
from hookchain.executor.context import ExecutorContext
from hookchain.executor.lifecycle import LifecycleExecutor
from hookchain.models import DEFAULT_HOOK_ON_BEFORE, DEFAULT_HOOK_ON_SUCCESS, RequestConfig, RetryOptions
from hookchain.plugins.retry import RetryManager, RetryPlugin
from hookchain.request.plugins import RequestErrorID, RequestPlugin, ResponseStatusPlugin

logger = logging.getLogger(__name__)

REQUEST_BEFORE_HOOKS = [
    DEFAULT_HOOK_ON_BEFORE,
    "on_build_url",
    "on_inject_headers",
    "on_serialize_data",
]
REQUEST_AFTER_HOOKS = [DEFAULT_HOOK_ON_SUCCESS, "on_parse_response"]


@dataclass
class RequestResponse:
    """Result of :meth:`RequestAdapter.request`.

    ``data`` holds the raw body bytes until a plugin (by default
    :class:`ResponseStatusPlugin`) parses it.
    """

    data: Any
    status_code: int
    status_text: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    parameters: dict[str, Any] = field(default_factory=dict)
    response: Optional[httpx.Response] = None

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class RequestAdapter:
    """Send HTTP requests through a plugin lifecycle.

    Args:
        config: Defaults for every request (base URL, timeout, SSL
            verification, headers, retries).
        client: An existing :class:`httpx.AsyncClient`. The adapter never
            closes a client it did not create.
        use_default_plugins: Register :class:`RequestPlugin` and
            :class:`ResponseStatusPlugin`, plus a :class:`RetryPlugin` when
            ``config.max_retries`` is positive.
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        use_default_plugins: bool = True,
    ) -> None:
        self.config = config or RequestConfig()
        self._client = client
        self._owns_client = False
        self.executor = LifecycleExecutor(
            before_hooks=REQUEST_BEFORE_HOOKS,
            after_hooks=REQUEST_AFTER_HOOKS,
        )

        if use_default_plugins:
            self.use(RequestPlugin(base_url=self.config.base_url, headers=self.config.headers))
            self.use(ResponseStatusPlugin())
            if self.config.max_retries > 0:
                options = RetryOptions(
                    max_retries=self.config.max_retries,
                    retry_delay=self.config.retry_delay,
                    use_exponential_backoff=True,
                )
                self.use(RetryPlugin(RetryManager(options)))

    def use(self, plugin: Any) -> RequestAdapter:
        self.executor.use(plugin)
        return self

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RequestAdapter:
        if self._client is None:
            self._client = self._build_client()
            self._owns_client = True
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout,
            verify=self.config.verify_ssl,
            follow_redirects=True,
        )

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(self, **parameters: Any) -> RequestResponse:
        """Run one request through the plugin lifecycle.

        Keyword arguments form the request parameters. ``url`` is required;
        ``method`` defaults to ``"GET"``.

        Raises:
            RequestError: ``URL_NONE`` when no URL is given, or any error
                mapped by the registered plugins.
        """
        if not parameters.get("url"):
            raise RequestError(RequestErrorID.URL_NONE)

        parameters.setdefault("method", "GET")
        return await self.executor.exec(parameters, self._send)

    async def get(self, url: str, **parameters: Any) -> RequestResponse:
        return await self.request(url=url, method="GET", **parameters)

    async def post(self, url: str, data: Any = None, **parameters: Any) -> RequestResponse:
        return await self.request(url=url, method="POST", data=data, **parameters)

    async def put(self, url: str, data: Any = None, **parameters: Any) -> RequestResponse:
        return await self.request(url=url, method="PUT", data=data, **parameters)

    async def patch(self, url: str, data: Any = None, **parameters: Any) -> RequestResponse:
        return await self.request(url=url, method="PATCH", data=data, **parameters)

    async def delete(self, url: str, **parameters: Any) -> RequestResponse:
        return await self.request(url=url, method="DELETE", **parameters)

    async def head(self, url: str, **parameters: Any) -> RequestResponse:
        return await self.request(url=url, method="HEAD", **parameters)

    async def options(self, url: str, **parameters: Any) -> RequestResponse:
        return await self.request(url=url, method="OPTIONS", **parameters)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    async def _send(self, context: ExecutorContext) -> RequestResponse:
        params = context.parameters
        if self._client is not None:
            response = await self._client_request(self._client, params)
        else:
            async with self._build_client() as client:
                response = await self._client_request(client, params)

        return RequestResponse(
            data=response.content,
            status_code=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            parameters=params,
            response=response,
        )

    async def _client_request(
        self, client: httpx.AsyncClient, params: dict[str, Any]
    ) -> httpx.Response:
        method = str(params.get("method", "GET")).upper()
        url = params["url"]
        logger.debug("%s %s", method, url)

        kwargs: dict[str, Any] = {
            "headers": params.get("headers") or None,
            "params": params.get("params") or None,
        }
        data = params.get("data")
        if isinstance(data, (str, bytes)):
            kwargs["content"] = data
        elif data is not None:
            kwargs["data"] = data
        if params.get("timeout") is not None:
            kwargs["timeout"] = params["timeout"]

        return await client.request(method, url, **kwargs)
