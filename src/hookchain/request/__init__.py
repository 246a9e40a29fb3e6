"""HTTP request layer on top of the lifecycle executor, using httpx."""

from hookchain.request.adapter import (
    REQUEST_AFTER_HOOKS,
    REQUEST_BEFORE_HOOKS,
    RequestAdapter,
    RequestResponse,
)
from hookchain.request.plugins import RequestErrorID, RequestPlugin, ResponseStatusPlugin

__all__ = [
    "REQUEST_AFTER_HOOKS",
    "REQUEST_BEFORE_HOOKS",
    "RequestAdapter",
    "RequestErrorID",
    "RequestPlugin",
    "RequestResponse",
    "ResponseStatusPlugin",
]
