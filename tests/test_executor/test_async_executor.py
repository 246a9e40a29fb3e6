"""Tests for AsyncExecutor: awaiting hooks and tasks, validation, and retry integration."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from hookchain.exceptions import ExecutorError, InvalidTaskError
from hookchain.executor import AsyncExecutor, ExecutorContext
from hookchain.models import RetryOptions
from hookchain.plugins.retry import RetryManager, RetryPlugin


class AsyncRecorder:
    """Plugin whose hooks are coroutines that yield to the loop before logging."""

    def __init__(self, name: str, log: list[str]) -> None:
        self.plugin_name = name
        self._log = log

    async def on_before(self, context: ExecutorContext) -> None:
        await asyncio.sleep(0)
        self._log.append(f"{self.plugin_name}.on_before")

    async def on_success(self, context: ExecutorContext) -> None:
        await asyncio.sleep(0)
        self._log.append(f"{self.plugin_name}.on_success")

    async def on_error(self, context: ExecutorContext) -> None:
        await asyncio.sleep(0)
        self._log.append(f"{self.plugin_name}.on_error")


class SyncRecorder:
    def __init__(self, name: str, log: list[str]) -> None:
        self.plugin_name = name
        self._log = log

    def on_before(self, context: ExecutorContext) -> None:
        self._log.append(f"{self.plugin_name}.on_before")

    def on_success(self, context: ExecutorContext) -> None:
        self._log.append(f"{self.plugin_name}.on_success")


async def async_task(ctx: ExecutorContext) -> str:
    await asyncio.sleep(0)
    return "x"


@pytest.fixture
def executor() -> AsyncExecutor:
    return AsyncExecutor()


class TestAsyncScenarios:
    @pytest.mark.asyncio
    async def test_no_plugins(self, executor: AsyncExecutor) -> None:
        assert await executor.exec(async_task) == "x"

    @pytest.mark.asyncio
    async def test_retry_runs_task_until_success(self, executor: AsyncExecutor) -> None:
        attempts = 0

        async def flaky(ctx: ExecutorContext) -> str:
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise ConnectionError(f"attempt {attempts} failed")
            return "ok"

        executor.use(RetryPlugin(RetryManager(RetryOptions(max_retries=2, retry_delay=0))))

        assert await executor.exec(flaky) == "ok"
        assert attempts == 3

    @pytest.mark.asyncio
    async def test_exec_no_error_returns_executor_error(
        self, executor: AsyncExecutor
    ) -> None:
        async def failing(ctx: ExecutorContext) -> None:
            raise ValueError("e")

        result = await executor.exec_no_error(failing)

        assert isinstance(result, ExecutorError)
        assert str(result) == "e"
        assert result.id == "UNKNOWN_ASYNC_ERROR"


class TestAwaiting:
    @pytest.mark.asyncio
    async def test_hooks_run_sequentially(self, executor: AsyncExecutor) -> None:
        log: list[str] = []
        executor.use(AsyncRecorder("a", log)).use(SyncRecorder("b", log))
        executor.use(AsyncRecorder("c", log))

        await executor.exec(async_task)

        assert log == [
            "a.on_before",
            "b.on_before",
            "c.on_before",
            "a.on_success",
            "b.on_success",
            "c.on_success",
        ]

    @pytest.mark.asyncio
    async def test_sync_task_is_accepted(self, executor: AsyncExecutor) -> None:
        assert await executor.exec({"n": 2}, lambda ctx: ctx.parameters["n"] * 2) == 4

    @pytest.mark.asyncio
    async def test_async_exec_hook_value(self, executor: AsyncExecutor) -> None:
        class AsyncValue:
            plugin_name = "async-value"

            async def on_exec(self, context: ExecutorContext, task: Any) -> str:
                return "from-hook"

        executor.use(AsyncValue())
        assert await executor.exec(async_task) == "from-hook"

    @pytest.mark.asyncio
    async def test_async_wrapper_composes(self, executor: AsyncExecutor) -> None:
        class Wrap:
            def __init__(self, name: str) -> None:
                self.plugin_name = name

            def on_exec(self, context: ExecutorContext, task: Any) -> Any:
                async def wrapper(ctx: ExecutorContext) -> str:
                    return f"{self.plugin_name}({await task(ctx)})"

                return wrapper

        executor.use(Wrap("a")).use(Wrap("b"))
        assert await executor.exec(async_task) == "b(a(x))"

    @pytest.mark.asyncio
    async def test_nested_awaitables_are_flattened(self, executor: AsyncExecutor) -> None:
        async def inner() -> str:
            return "deep"

        class Nested:
            plugin_name = "nested"

            async def on_exec(self, context: ExecutorContext, task: Any) -> Any:
                return inner()

        executor.use(Nested())
        assert await executor.exec(async_task) == "deep"

    @pytest.mark.asyncio
    async def test_async_error_hook_can_substitute(self, executor: AsyncExecutor) -> None:
        replacement = ExecutorError("CUSTOM", "replaced")

        class Replace:
            plugin_name = "replace"

            async def on_error(self, context: ExecutorContext) -> ExecutorError:
                return replacement

        async def failing(ctx: ExecutorContext) -> None:
            raise ValueError("e")

        executor.use(Replace())
        with pytest.raises(ExecutorError) as exc_info:
            await executor.exec(failing)

        assert exc_info.value is replacement

    @pytest.mark.asyncio
    async def test_rejected_before_hook_goes_to_error_phase(
        self, executor: AsyncExecutor
    ) -> None:
        log: list[str] = []

        class Reject:
            plugin_name = "reject"

            async def on_before(self, context: ExecutorContext) -> None:
                raise PermissionError("denied")

        executor.use(Reject()).use(AsyncRecorder("observer", log))

        with pytest.raises(ExecutorError, match="denied"):
            await executor.exec(async_task)

        assert log == ["observer.on_error"]


class TestValidation:
    def test_invalid_task_raises_at_call_time(self, executor: AsyncExecutor) -> None:
        with pytest.raises(InvalidTaskError, match="Task must be a async function!"):
            executor.exec({}, "not callable")

    @pytest.mark.asyncio
    async def test_exec_no_error_wraps_invalid_task(self, executor: AsyncExecutor) -> None:
        result = await executor.exec_no_error(None)

        assert isinstance(result, ExecutorError)
        assert str(result) == "Task must be a async function!"

    @pytest.mark.asyncio
    async def test_run_hooks_awaits(self, executor: AsyncExecutor) -> None:
        class Custom:
            plugin_name = "custom"

            async def custom(self, context: ExecutorContext) -> str:
                return "done"

        assert await executor.run_hooks([Custom()], "custom") == "done"


async def failing_task(ctx: ExecutorContext) -> None:
    await asyncio.sleep(0)
    raise ValueError("task failed")


class TestAsyncErrorPhase:
    @pytest.mark.asyncio
    async def test_success_hook_raise_skips_later_success_hooks(
        self, executor: AsyncExecutor
    ) -> None:
        log: list[str] = []

        class Explode:
            plugin_name = "explode"

            async def on_success(self, context: ExecutorContext) -> None:
                log.append("explode.on_success")
                raise RuntimeError("bad result")

        executor.use(Explode()).use(AsyncRecorder("later", log))

        with pytest.raises(ExecutorError, match="bad result"):
            await executor.exec(async_task)

        assert log == ["later.on_before", "explode.on_success", "later.on_error"]

    @pytest.mark.asyncio
    async def test_error_hook_raise_propagates_verbatim(
        self, executor: AsyncExecutor
    ) -> None:
        log: list[str] = []
        handler_error = RuntimeError("handler failed")

        class Explode:
            plugin_name = "explode"

            async def on_error(self, context: ExecutorContext) -> None:
                raise handler_error

        executor.use(Explode()).use(AsyncRecorder("later", log))

        with pytest.raises(RuntimeError) as exc_info:
            await executor.exec(failing_task)

        assert exc_info.value is handler_error
        assert "later.on_error" not in log

    @pytest.mark.asyncio
    async def test_return_break_chain_stops_error_hooks(
        self, executor: AsyncExecutor
    ) -> None:
        log: list[str] = []

        class Stop:
            plugin_name = "stop"

            async def on_error(self, context: ExecutorContext) -> None:
                log.append("stop.on_error")
                context.hooks_runtimes.return_break_chain = True

        executor.use(Stop()).use(AsyncRecorder("later", log))

        with pytest.raises(ExecutorError, match="task failed"):
            await executor.exec(failing_task)

        assert log == ["later.on_before", "stop.on_error"]

    @pytest.mark.asyncio
    async def test_exec_hook_raise_enters_error_phase(self, executor: AsyncExecutor) -> None:
        log: list[str] = []

        class Broken:
            plugin_name = "broken"

            async def on_exec(self, context: ExecutorContext, task: Any) -> Any:
                raise LookupError("no such executable")

        executor.use(Broken()).use(AsyncRecorder("observer", log))

        with pytest.raises(ExecutorError) as exc_info:
            await executor.exec(async_task)

        assert str(exc_info.value) == "no such executable"
        assert exc_info.value.id == "UNKNOWN_ASYNC_ERROR"
        assert isinstance(exc_info.value.__cause__, LookupError)
        assert log == ["observer.on_before", "observer.on_error"]

    @pytest.mark.asyncio
    async def test_none_plugin_fails(self, executor: AsyncExecutor) -> None:
        executor.use(None)
        assert executor.plugins == [None]

        with pytest.raises(TypeError):
            await executor.exec(async_task)

    @pytest.mark.asyncio
    async def test_exec_no_error_skips_success_phase(self, executor: AsyncExecutor) -> None:
        log: list[str] = []
        executor.use(AsyncRecorder("a", log))

        result = await executor.exec_no_error(failing_task)

        assert isinstance(result, ExecutorError)
        assert str(result) == "task failed"
        assert log == ["a.on_before", "a.on_error"]

    @pytest.mark.asyncio
    async def test_exec_no_error_with_success_hook_raise_and_break(
        self, executor: AsyncExecutor
    ) -> None:
        log: list[str] = []

        class First:
            plugin_name = "first"

            async def on_success(self, context: ExecutorContext) -> None:
                log.append("first.on_success")
                raise RuntimeError("s")

            async def on_error(self, context: ExecutorContext) -> None:
                log.append("first.on_error")
                context.hooks_runtimes.return_break_chain = True

        class Second:
            plugin_name = "second"

            async def on_success(self, context: ExecutorContext) -> None:
                log.append("second.on_success")

            async def on_error(self, context: ExecutorContext) -> None:
                log.append("second.on_error")

        executor.use(First()).use(Second())

        result = await executor.exec_no_error(async_task)

        assert isinstance(result, ExecutorError)
        assert str(result) == "s"
        assert log == ["first.on_success", "first.on_error"]
