"""Retry plugin: re-run a failing task with a fixed or exponential delay."""

from hookchain.plugins.retry.plugin import RETRY_ERROR_ID, RetryManager, RetryPlugin

__all__ = ["RETRY_ERROR_ID", "RetryManager", "RetryPlugin"]
