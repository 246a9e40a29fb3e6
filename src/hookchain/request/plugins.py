"""Request-layer plugins for :class:`~hookchain.request.adapter.RequestAdapter`.

* :class:`RequestPlugin` prepares the request parameters in three before
  steps: ``on_build_url``, ``on_inject_headers`` and ``on_serialize_data``.
* :class:`ResponseStatusPlugin` turns error statuses into
  :class:`~hookchain.exceptions.RequestError`, parses the body in
  ``on_parse_response``, and maps any other failure to
  ``RequestError(REQUEST_ERROR)``.

Both plugins mutate ``context.parameters`` (a dict) in place; return values
of before hooks are ignored by the executor.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Callable, Optional

from hookchain.exceptions import RequestError, is_abort_error
from hookchain.executor.context import ExecutorContext
from hookchain.plugins.base import ExecutorPlugin

logger = logging.getLogger(__name__)

CONTENT_TYPE_HEADER = "Content-Type"
JSON_CONTENT_TYPE = "application/json"


class RequestErrorID:
    """Identifiers carried by :class:`~hookchain.exceptions.RequestError`."""

    RESPONSE_NOT_OK = "RESPONSE_NOT_OK"
    URL_NONE = "URL_NONE"
    REQUEST_ERROR = "REQUEST_ERROR"
    ABORT_ERROR = "ABORT_ERROR"


def _find_header(headers: dict[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _decode_body(body: Any, content_type: Optional[str]) -> Any:
    """Decode a raw ``bytes``/``str`` body; other values are already parsed."""
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    if not isinstance(body, str):
        return body
    if not body:
        return None
    if content_type is not None and JSON_CONTENT_TYPE not in content_type.lower():
        return body
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return body


def join_url(base_url: Optional[str], url: str) -> str:
    """Prefix *url* with *base_url* unless *url* is already absolute."""
    if not base_url or url.startswith(("http://", "https://")):
        return url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


class RequestPlugin(ExecutorPlugin):
    """Builds the final URL, merges headers, and serialises the body.

    Args:
        base_url: Used when the parameters carry no ``base_url``.
        headers: Default headers; per-request headers win.
        data_serializer: Custom body serialiser, called with ``data``.
    """

    description = "Builds URLs, injects headers and serialises request data"

    def __init__(
        self,
        base_url: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
        data_serializer: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        self.base_url = base_url
        self.headers = dict(headers or {})
        self.data_serializer = data_serializer

    def on_build_url(self, context: ExecutorContext) -> None:
        params = context.parameters
        params["url"] = join_url(params.get("base_url") or self.base_url, params["url"])

    def on_inject_headers(self, context: ExecutorContext) -> None:
        params = context.parameters
        headers = {**self.headers, **(params.get("headers") or {})}
        data = params.get("data")
        if isinstance(data, (dict, list)) and _find_header(headers, CONTENT_TYPE_HEADER) is None:
            headers[CONTENT_TYPE_HEADER] = JSON_CONTENT_TYPE
        params["headers"] = headers

    def on_serialize_data(self, context: ExecutorContext) -> None:
        params = context.parameters
        data = params.get("data")
        if data is None:
            return
        if self.data_serializer is not None:
            params["data"] = self.data_serializer(data)
            return

        content_type = _find_header(params.get("headers") or {}, CONTENT_TYPE_HEADER) or ""
        if JSON_CONTENT_TYPE in content_type.lower() and not isinstance(data, (str, bytes)):
            params["data"] = json.dumps(data)


class ResponseStatusPlugin(ExecutorPlugin):
    """Maps responses and failures onto :class:`RequestError`."""

    description = "Raises on error statuses and parses JSON bodies"

    def on_success(self, context: ExecutorContext) -> None:
        result = context.return_value
        if result.status_code >= 400:
            raise RequestError(
                RequestErrorID.RESPONSE_NOT_OK,
                f"Request failed with status: {result.status_code} {result.status_text}",
                status_code=result.status_code,
                response=result.response,
            )

    def on_parse_response(self, context: ExecutorContext) -> None:
        result = context.return_value
        response = result.response
        if response is None:
            # Produced by an exec hook (cache, mock) rather than the transport.
            data: Any = _decode_body(result.data, _find_header(result.headers, "content-type"))
        elif not response.content:
            data = None
        elif JSON_CONTENT_TYPE in response.headers.get("content-type", ""):
            data = response.json()
        else:
            data = response.text
        context.set_return_value(dataclasses.replace(result, data=data))

    def on_error(self, context: ExecutorContext) -> Optional[BaseException]:
        error = context.error
        if isinstance(error, RequestError) or is_abort_error(error):
            return None
        logger.debug("Mapping %s to %s", type(error).__name__, RequestErrorID.REQUEST_ERROR)
        return RequestError(RequestErrorID.REQUEST_ERROR, error)
