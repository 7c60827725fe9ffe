import asyncio

import pytest

from resilient_actions.core.errors import ExhaustionFailure, FailureKind
from resilient_actions.core.executor import AsyncResilientActionExecutor
from resilient_actions.core.models import ActionResult, Readiness


class AsyncStubEngine:
    """`hang` blocks in wait_until_ready until cancelled."""

    def __init__(self) -> None:
        self.calls = []
        self.waiting = asyncio.Event()
        self.cancelled = False

    def resolve(self, descriptor):
        return descriptor

    def describe(self, target):
        return f"candidate {target[0]}"

    async def wait_until_ready(self, target, state, timeout_ms):
        name, behaviour = target
        self.calls.append(("wait", name))
        if behaviour == "timeout":
            return Readiness.timed_out("not visible")
        if behaviour == "hang":
            self.waiting.set()
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        return Readiness.ready()

    async def perform(self, kind, target, value, timeout_ms):
        name, behaviour = target
        self.calls.append(("perform", name))
        if behaviour == "action-error":
            return ActionResult.failed("element is not attached to the DOM")
        return ActionResult.ok()


def test_async_timeout_then_success():
    async def scenario():
        engine = AsyncStubEngine()
        outcome = await AsyncResilientActionExecutor(engine).execute(
            "click", [("A", "timeout"), ("B", "ok")], timeout_ms=200
        )
        return engine, outcome

    engine, outcome = asyncio.run(scenario())
    assert outcome.candidate_index == 1
    assert outcome.attempts[0].failure.kind is FailureKind.timeout
    assert engine.calls == [("wait", "A"), ("wait", "B"), ("perform", "B")]


def test_async_exhaustion_raises():
    async def scenario():
        engine = AsyncStubEngine()
        await AsyncResilientActionExecutor(engine).fill(
            [("A", "timeout"), ("B", "action-error")], "hello", timeout_ms=100
        )

    with pytest.raises(ExhaustionFailure) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.cause.kind is FailureKind.action


def test_cancel_while_waiting_on_second_candidate():
    async def scenario():
        engine = AsyncStubEngine()
        seen = []
        executor = AsyncResilientActionExecutor(engine, sink=lambda i, d, p: seen.append(i))
        task = asyncio.create_task(
            executor.execute("click", [("A", "timeout"), ("B", "hang"), ("C", "ok")], timeout_ms=200)
        )
        await engine.waiting.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return engine, seen

    engine, seen = asyncio.run(scenario())
    assert engine.cancelled
    assert seen == [0]
    assert ("wait", "C") not in engine.calls
    assert not any(call[0] == "perform" for call in engine.calls)


def test_async_resolve_may_be_awaitable():
    class AwaitingResolve(AsyncStubEngine):
        async def resolve(self, descriptor):
            return descriptor

    async def scenario():
        return await AsyncResilientActionExecutor(AwaitingResolve()).execute(
            "hover", [("A", "ok")], timeout_ms=10
        )

    assert asyncio.run(scenario()).candidate_index == 0
