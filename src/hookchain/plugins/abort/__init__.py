"""Abort plugin: cooperative cancellation and timeouts for async executors."""

from hookchain.plugins.abort.plugin import AbortManager, AbortPlugin, AbortSignal

__all__ = ["AbortManager", "AbortPlugin", "AbortSignal"]
