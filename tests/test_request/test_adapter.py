"""Tests for RequestAdapter and the request-layer plugins.

All HTTP traffic goes through ``httpx.MockTransport``; no network access
is needed.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import httpx
import pytest

from hookchain.exceptions import AbortError, RequestError
from hookchain.executor import ExecutorContext
from hookchain.models import AbortOptions, RequestConfig
from hookchain.plugins.abort import AbortPlugin
from hookchain.request import (
    REQUEST_AFTER_HOOKS,
    REQUEST_BEFORE_HOOKS,
    RequestAdapter,
    RequestErrorID,
    RequestPlugin,
    RequestResponse,
    ResponseStatusPlugin,
)
from hookchain.request.plugins import join_url


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"path": request.url.path, "method": request.method})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestJoinUrl:
    @pytest.mark.parametrize(
        ("base", "url", "expected"),
        [
            (None, "/users", "/users"),
            ("https://api.example.com", "/users", "https://api.example.com/users"),
            ("https://api.example.com/", "users", "https://api.example.com/users"),
            ("https://api.example.com", "https://other.test/x", "https://other.test/x"),
        ],
    )
    def test_join(self, base: str | None, url: str, expected: str) -> None:
        assert join_url(base, url) == expected


# ---------------------------------------------------------------------------
# RequestPlugin
# ---------------------------------------------------------------------------


class TestRequestPlugin:
    def _context(self, **params: Any) -> ExecutorContext:
        return ExecutorContext(parameters=params)

    def test_build_url_prefers_parameter_base_url(self) -> None:
        plugin = RequestPlugin(base_url="https://default.test")
        context = self._context(url="/a", base_url="https://override.test")
        plugin.on_build_url(context)
        assert context.parameters["url"] == "https://override.test/a"

    def test_inject_headers_merges_defaults(self) -> None:
        plugin = RequestPlugin(headers={"X-Default": "1", "X-Both": "default"})
        context = self._context(url="/", headers={"X-Both": "call"})
        plugin.on_inject_headers(context)
        assert context.parameters["headers"] == {"X-Default": "1", "X-Both": "call"}

    def test_inject_headers_adds_json_content_type(self) -> None:
        plugin = RequestPlugin()
        context = self._context(url="/", data={"a": 1})
        plugin.on_inject_headers(context)
        assert context.parameters["headers"]["Content-Type"] == "application/json"

    def test_inject_headers_keeps_explicit_content_type(self) -> None:
        plugin = RequestPlugin()
        context = self._context(url="/", data={"a": 1}, headers={"content-type": "text/csv"})
        plugin.on_inject_headers(context)
        assert context.parameters["headers"] == {"content-type": "text/csv"}

    def test_serialize_json(self) -> None:
        plugin = RequestPlugin()
        context = self._context(
            url="/", data={"a": 1}, headers={"Content-Type": "application/json"}
        )
        plugin.on_serialize_data(context)
        assert json.loads(context.parameters["data"]) == {"a": 1}

    def test_serialize_leaves_strings(self) -> None:
        plugin = RequestPlugin()
        context = self._context(
            url="/", data="raw", headers={"Content-Type": "application/json"}
        )
        plugin.on_serialize_data(context)
        assert context.parameters["data"] == "raw"

    def test_custom_serializer(self) -> None:
        plugin = RequestPlugin(data_serializer=lambda data: "custom")
        context = self._context(url="/", data={"a": 1})
        plugin.on_serialize_data(context)
        assert context.parameters["data"] == "custom"


# ---------------------------------------------------------------------------
# ResponseStatusPlugin
# ---------------------------------------------------------------------------


class TestResponseStatusPlugin:
    def test_error_hook_maps_plain_errors(self) -> None:
        context = ExecutorContext(parameters={}, error=httpx.ConnectError("refused"))
        mapped = ResponseStatusPlugin().on_error(context)

        assert isinstance(mapped, RequestError)
        assert mapped.id == RequestErrorID.REQUEST_ERROR
        assert str(mapped) == "refused"

    def test_error_hook_leaves_request_and_abort_errors(self) -> None:
        plugin = ResponseStatusPlugin()
        for error in (RequestError(RequestErrorID.URL_NONE), AbortError()):
            assert plugin.on_error(ExecutorContext(error=error)) is None

    @pytest.mark.parametrize(
        ("data", "headers", "expected"),
        [
            (b'{"a": 1}', {}, {"a": 1}),
            ('{"a": 1}', {"Content-Type": "application/json"}, {"a": 1}),
            ("plain words", {}, "plain words"),
            ('{"a": 1}', {"content-type": "text/plain"}, '{"a": 1}'),
            (b"", {}, None),
            ({"already": "parsed"}, {}, {"already": "parsed"}),
        ],
    )
    def test_parse_response_without_transport_response(
        self, data: Any, headers: dict[str, str], expected: Any
    ) -> None:
        result = RequestResponse(data=data, status_code=200, headers=headers)
        context = ExecutorContext(parameters={}, return_value=result)

        ResponseStatusPlugin().on_parse_response(context)

        assert context.return_value.data == expected
        assert context.return_value.response is None


# ---------------------------------------------------------------------------
# RequestAdapter
# ---------------------------------------------------------------------------


class TestRequestAdapter:
    def test_default_plugins_and_hooks(self) -> None:
        adapter = RequestAdapter()
        names = [plugin.plugin_name for plugin in adapter.executor.plugins]

        assert names == ["RequestPlugin", "ResponseStatusPlugin"]
        assert adapter.executor.get_before_hooks() == REQUEST_BEFORE_HOOKS
        assert adapter.executor.get_after_hooks() == REQUEST_AFTER_HOOKS

    def test_retry_plugin_added_when_configured(self) -> None:
        adapter = RequestAdapter(RequestConfig(max_retries=2))
        names = [plugin.plugin_name for plugin in adapter.executor.plugins]
        assert names[-1] == "RetryPlugin"

    def test_no_default_plugins(self) -> None:
        assert RequestAdapter(use_default_plugins=False).executor.plugins == []

    @pytest.mark.asyncio
    async def test_get_json(self) -> None:
        adapter = RequestAdapter(
            RequestConfig(base_url="https://api.example.com"),
            client=make_client(json_handler),
        )

        result = await adapter.get("/users", params={"page": 2})

        assert isinstance(result, RequestResponse)
        assert result.ok
        assert result.status_code == 200
        assert result.data == {"path": "/users", "method": "GET"}
        assert result.parameters["url"] == "https://api.example.com/users"

    @pytest.mark.asyncio
    async def test_post_serializes_json_body(self) -> None:
        captured: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            captured["content_type"] = request.headers["content-type"]
            captured["token"] = request.headers.get("x-token")
            return httpx.Response(201, text="created")

        adapter = RequestAdapter(
            RequestConfig(headers={"X-Token": "secret"}), client=make_client(handler)
        )

        result = await adapter.post("https://api.example.com/items", data={"name": "a"})

        assert result.status_code == 201
        assert result.data == "created"
        assert captured == {
            "body": {"name": "a"},
            "content_type": "application/json",
            "token": "secret",
        }

    @pytest.mark.asyncio
    async def test_empty_body_parses_to_none(self) -> None:
        adapter = RequestAdapter(
            client=make_client(lambda request: httpx.Response(204))
        )
        result = await adapter.delete("https://api.example.com/items/1")
        assert result.data is None

    @pytest.mark.asyncio
    async def test_error_status_raises_request_error(self) -> None:
        adapter = RequestAdapter(
            client=make_client(lambda request: httpx.Response(404, text="missing"))
        )

        with pytest.raises(RequestError) as exc_info:
            await adapter.get("https://api.example.com/missing")

        assert exc_info.value.id == RequestErrorID.RESPONSE_NOT_OK
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Request failed with status: 404 Not Found"

    @pytest.mark.asyncio
    async def test_exec_hook_value_replaces_send(self) -> None:
        class CachePlugin:
            plugin_name = "CachePlugin"

            def on_exec(self, context: ExecutorContext) -> RequestResponse:
                return RequestResponse(data=b'{"a": 1}', status_code=200, status_text="OK")

        def unreachable(request: httpx.Request) -> httpx.Response:
            raise AssertionError("transport must not be called")

        adapter = RequestAdapter(client=make_client(unreachable)).use(CachePlugin())

        result = await adapter.get("https://api.example.com/cached")

        assert result.data == {"a": 1}
        assert result.response is None
        assert result.ok

    @pytest.mark.asyncio
    async def test_exec_hook_value_with_error_status(self) -> None:
        class StubPlugin:
            plugin_name = "StubPlugin"

            def on_exec(self, context: ExecutorContext) -> RequestResponse:
                return RequestResponse(data=None, status_code=503, status_text="Unavailable")

        adapter = RequestAdapter(client=make_client(json_handler)).use(StubPlugin())

        with pytest.raises(RequestError) as exc_info:
            await adapter.get("https://api.example.com/")

        assert exc_info.value.id == RequestErrorID.RESPONSE_NOT_OK
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_missing_url(self) -> None:
        with pytest.raises(RequestError) as exc_info:
            await RequestAdapter().request(method="GET")
        assert exc_info.value.id == RequestErrorID.URL_NONE

    @pytest.mark.asyncio
    async def test_transport_errors_are_mapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        adapter = RequestAdapter(client=make_client(handler))

        with pytest.raises(RequestError) as exc_info:
            await adapter.get("https://api.example.com/")

        assert exc_info.value.id == RequestErrorID.REQUEST_ERROR
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_retries_transport_errors(self) -> None:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] < 3:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"ok": True})

        adapter = RequestAdapter(
            RequestConfig(max_retries=2, retry_delay=0), client=make_client(handler)
        )

        result = await adapter.get("https://api.example.com/")

        assert result.data == {"ok": True}
        assert calls["count"] == 3

    @pytest.mark.asyncio
    async def test_custom_plugin_sees_hooks(self) -> None:
        seen: list[str] = []

        class Audit:
            plugin_name = "audit"

            def on_inject_headers(self, context: ExecutorContext) -> None:
                context.parameters["headers"]["X-Audit"] = "1"
                seen.append("on_inject_headers")

            def on_parse_response(self, context: ExecutorContext) -> None:
                seen.append("on_parse_response")

            def on_finally(self, context: ExecutorContext) -> None:
                seen.append("on_finally")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"audit": request.headers.get("x-audit")})

        adapter = RequestAdapter(client=make_client(handler)).use(Audit())
        result = await adapter.get("https://api.example.com/")

        assert result.data == {"audit": "1"}
        assert seen == ["on_inject_headers", "on_parse_response", "on_finally"]

    @pytest.mark.asyncio
    async def test_abort_timeout(self) -> None:
        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        adapter = RequestAdapter(client=make_client(slow_handler))
        adapter.use(AbortPlugin(AbortOptions(timeout=0.01)))

        with pytest.raises(AbortError, match="timed out"):
            await adapter.get("https://api.example.com/slow")

    @pytest.mark.asyncio
    async def test_context_manager_owns_client(self) -> None:
        adapter = RequestAdapter()
        async with adapter:
            assert adapter._client is not None
            client = adapter._client
        assert adapter._client is None
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self) -> None:
        client = make_client(json_handler)
        async with RequestAdapter(client=client):
            pass
        assert not client.is_closed
        await client.aclose()
