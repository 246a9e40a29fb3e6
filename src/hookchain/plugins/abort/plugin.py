"""Cooperative cancellation for async executors.

:class:`AbortManager` keeps one :class:`AbortSignal` per in-flight
operation, keyed by an abort id. :class:`AbortPlugin` registers a signal
in ``on_before``, races the exec-phase executable against it, turns an
abort into an :class:`~hookchain.exceptions.AbortError` in ``on_error`` and
releases the registration in ``on_finally`` at the latest.

The operation parameters must be a mutable mapping: the plugin reads
``abort_id`` and ``abort_timeout`` from it and stores ``abort_id`` and
``signal`` back into it so the task can observe cancellation.

Example::

    plugin = AbortPlugin(AbortOptions(timeout=5))
    executor = LifecycleExecutor().use(plugin)

    pending = asyncio.ensure_future(executor.exec({"abort_id": "search"}, search))
    plugin.abort("search")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, MutableMapping, Optional, Union

from hookchain.exceptions import AbortError, is_abort_error
from hookchain.executor.context import ExecutorContext
from hookchain.models import AbortOptions
from hookchain.plugins.base import ExecutorPlugin
from hookchain.plugins.hooks import resolve_awaitable

logger = logging.getLogger(__name__)

AbortConfig = MutableMapping[str, Any]


class AbortSignal:
    """One-shot cancellation flag that coroutines can wait on."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[BaseException] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: Optional[BaseException] = None) -> None:
        """Mark the signal aborted. Later calls keep the first reason."""
        if self.aborted:
            return
        self.reason = reason or AbortError()
        self._event.set()

    async def wait(self) -> Optional[BaseException]:
        """Block until the signal is aborted and return the reason."""
        await self._event.wait()
        return self.reason

    def throw_if_aborted(self) -> None:
        if self.aborted:
            raise self.reason  # type: ignore[misc]


class _Registration:
    __slots__ = ("signal", "config", "timer")

    def __init__(self, signal: AbortSignal, config: AbortConfig) -> None:
        self.signal = signal
        self.config = config
        self.timer: Optional[asyncio.TimerHandle] = None


class AbortManager:
    """Registry of abortable operations.

    Args:
        pool_name: Prefix for generated abort ids.
    """

    def __init__(self, pool_name: str = "AbortManager") -> None:
        self.pool_name = pool_name
        self._counter = 0
        self._registrations: dict[str, _Registration] = {}

    def __len__(self) -> int:
        return len(self._registrations)

    def generate_abort_id(self, config: Optional[AbortConfig] = None) -> str:
        """Return ``config["abort_id"]`` or a fresh ``"<pool>-<n>"`` id."""
        if config and config.get("abort_id"):
            return str(config["abort_id"])
        self._counter += 1
        return f"{self.pool_name}-{self._counter}"

    def _resolve_key(self, config: Union[AbortConfig, str]) -> str:
        if isinstance(config, str):
            return config
        return self.generate_abort_id(config)

    def register(self, config: AbortConfig) -> tuple[str, AbortSignal]:
        """Register an operation and return its ``(abort_id, signal)``.

        When ``config["abort_timeout"]`` is set the operation is aborted
        after that many seconds. Scheduling the timer requires a running
        event loop.

        Raises:
            ValueError: If the abort id is already registered.
        """
        abort_id = self.generate_abort_id(config)
        if abort_id in self._registrations:
            raise ValueError(
                f'Operation with ID "{abort_id}" is already registered in {self.pool_name}'
            )

        registration = _Registration(AbortSignal(), config)
        timeout = config.get("abort_timeout")
        if timeout is not None:
            loop = asyncio.get_running_loop()
            registration.timer = loop.call_later(
                timeout, self._on_timeout, abort_id, timeout
            )
        self._registrations[abort_id] = registration
        logger.debug("Registered abortable operation '%s'", abort_id)
        return abort_id, registration.signal

    def _on_timeout(self, abort_id: str, timeout: float) -> None:
        registration = self._registrations.get(abort_id)
        if registration is None:
            return
        logger.debug("Operation '%s' timed out after %ss", abort_id, timeout)
        registration.signal.abort(
            AbortError(
                f"The operation timed out after {timeout}s",
                abort_id=abort_id,
                timeout=timeout,
            )
        )
        self.cleanup(abort_id)

    def get_signal(self, config: Union[AbortConfig, str]) -> Optional[AbortSignal]:
        registration = self._registrations.get(self._resolve_key(config))
        return registration.signal if registration else None

    def cleanup(
        self, config: Union[AbortConfig, str], signal: Optional[AbortSignal] = None
    ) -> None:
        """Forget an operation without aborting it.

        With *signal*, the registration is only dropped if it still owns that
        signal, so a run never releases the one that superseded it.
        """
        key = self._resolve_key(config)
        registration = self._registrations.get(key)
        if registration is None:
            return
        if signal is not None and registration.signal is not signal:
            return
        del self._registrations[key]
        if registration.timer is not None:
            registration.timer.cancel()

    def abort(self, config: Union[AbortConfig, str]) -> bool:
        """Abort one operation; return ``False`` if it is not registered."""
        key = self._resolve_key(config)
        registration = self._registrations.get(key)
        if registration is None:
            return False

        registration.signal.abort(AbortError("The operation was aborted", abort_id=key))
        self.cleanup(key)
        logger.debug("Aborted operation '%s'", key)
        return True

    def abort_all(self) -> None:
        """Abort every registered operation and clear the registry."""
        for key in list(self._registrations):
            registration = self._registrations[key]
            registration.signal.abort(
                AbortError("All operations were aborted", abort_id=key)
            )
            self.cleanup(key)


class AbortPlugin(ExecutorPlugin):
    """Make executor calls abortable by id or by timeout.

    Args:
        options: Default timeout and plugin name.
        abort_manager: Registry to use; a private one is created by default.
        get_config: Extracts the abort config mapping from the parameters.
            Defaults to using the parameters themselves.
    """

    only_one = True
    description = "Cancels in-flight operations by id or after a timeout"

    def __init__(
        self,
        options: Optional[AbortOptions] = None,
        abort_manager: Optional[AbortManager] = None,
        get_config: Optional[Callable[[Any], AbortConfig]] = None,
    ) -> None:
        self.options = options or AbortOptions()
        self.plugin_name = self.options.plugin_name
        self.abort_manager = abort_manager or AbortManager(self.plugin_name)
        self.get_config = get_config or (lambda parameters: parameters)

    def _config(self, context: ExecutorContext) -> Optional[AbortConfig]:
        if context.parameters is None:
            return None
        return self.get_config(context.parameters)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_before(self, context: ExecutorContext) -> None:
        config = self._config(context)
        if config is None:
            return
        if config.get("abort_timeout") is None and self.options.timeout is not None:
            config["abort_timeout"] = self.options.timeout

        # A new run with the same id supersedes the previous one.
        if config.get("abort_id"):
            self.abort_manager.abort(config)
        abort_id, signal = self.abort_manager.register(config)
        config["abort_id"] = abort_id
        config["signal"] = signal

    def on_exec(
        self, context: ExecutorContext, task: Callable[[ExecutorContext], Any]
    ) -> Optional[Callable[[ExecutorContext], Any]]:
        config = self._config(context)
        signal = config.get("signal") if config is not None else None
        if not isinstance(signal, AbortSignal):
            return None

        async def run_abortable(ctx: ExecutorContext) -> Any:
            signal.throw_if_aborted()
            work = asyncio.ensure_future(resolve_awaitable(task(ctx)))
            waiter = asyncio.ensure_future(signal.wait())
            try:
                await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                waiter.cancel()

            if work.done():
                return work.result()

            work.cancel()
            await asyncio.gather(work, return_exceptions=True)
            raise signal.reason  # type: ignore[misc]

        return run_abortable

    def _release(self, config: Optional[AbortConfig]) -> None:
        if config is None:
            return
        signal = config.get("signal")
        if isinstance(signal, AbortSignal) and config.get("abort_id"):
            self.abort_manager.cleanup(str(config["abort_id"]), signal=signal)

    def on_success(self, context: ExecutorContext) -> None:
        self._release(self._config(context))

    def on_error(self, context: ExecutorContext) -> Optional[AbortError]:
        config = self._config(context)
        if config is None:
            return None

        self._release(config)
        if not is_abort_error(context.error):
            return None

        signal = config.get("signal")
        reason = signal.reason if isinstance(signal, AbortSignal) else None
        if isinstance(reason, AbortError):
            return reason
        message = str(reason or context.error or "") or "The operation was aborted"
        return AbortError(message, abort_id=config.get("abort_id"))

    def on_finally(self, context: ExecutorContext) -> None:
        # Error hooks registered earlier may have raised and cut on_error off.
        self._release(self._config(context))

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def abort(self, config: Union[AbortConfig, str]) -> bool:
        return self.abort_manager.abort(config)

    def abort_all(self) -> None:
        self.abort_manager.abort_all()

    def cleanup(self, config: Union[AbortConfig, str, None] = None) -> None:
        """Forget one operation, or abort everything when called without arguments."""
        if config is None:
            self.abort_all()
        else:
            self.abort_manager.cleanup(config)
