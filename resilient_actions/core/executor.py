# resilient_actions/core/executor.py
from __future__ import annotations

"""Resilient action executor
----------------------------
Runs one action against an ordered list of candidate descriptors, trying each
in turn until one becomes ready and accepts the action. Candidates are tried
strictly one after another; there is no backoff and no second try of the same
candidate beyond the engine's own readiness wait.
"""

import inspect
from typing import Any, Callable, Iterable, List, Optional, Union

from resilient_actions.core.errors import AttemptFailure, ConfigurationError, FailureKind
from resilient_actions.core.models import (
    ActionKind,
    ActionRequest,
    ActionResult,
    AttemptRecord,
    ExecutionOutcome,
    FailureReason,
    Readiness,
    ReadinessStatus,
)
from resilient_actions.core.protocol import AsyncResolutionEngine, ResolutionEngine
from resilient_actions.utils.config import get_settings
from resilient_actions.utils.logger import get_logger, log_with_context
from resilient_actions.utils.timing import Stopwatch, human_ms

# (attempt_index | None for the final summary, description, AttemptRecord | ExecutionOutcome)
AttemptSink = Callable[[Optional[int], str, Any], None]
ContinuePolicy = Callable[[AttemptFailure], bool]

UNKNOWN_TARGET = "<unknown target>"

log = get_logger(__name__)


def _always_continue(failure: AttemptFailure) -> bool:
    return True


class _ExecutorBase:
    """Shared request validation, attempt bookkeeping and logging."""

    def __init__(
        self,
        engine: Any,
        *,
        sink: Optional[AttemptSink] = None,
        should_continue: Optional[ContinuePolicy] = None,
        default_timeout_ms: Optional[int] = None,
    ) -> None:
        self.engine = engine
        self.sink = sink
        self.should_continue = should_continue or _always_continue
        self.default_timeout_ms = default_timeout_ms

    # ---------- Request ----------

    def _request(self, kind: Union[ActionKind, str], value: Optional[str], timeout_ms: Optional[int]) -> ActionRequest:
        if timeout_ms is None:
            timeout_ms = self.default_timeout_ms
        if timeout_ms is None:
            timeout_ms = get_settings().DEFAULT_ATTEMPT_TIMEOUT_MS
        try:
            action = ActionKind(kind)
        except ValueError as e:
            raise ConfigurationError(f"Unsupported action: {kind!r}") from e
        return ActionRequest(kind=action, timeout_ms=timeout_ms, value=value).validate()

    # ---------- Attempt helpers ----------

    def _describe(self, target: Any) -> str:
        try:
            text = self.engine.describe(target)
        except Exception:
            return UNKNOWN_TARGET
        return text if isinstance(text, str) and text else UNKNOWN_TARGET

    @staticmethod
    def _readiness_failure(readiness: Readiness, index: int, description: str) -> AttemptFailure:
        kind = FailureKind.timeout if readiness.status is ReadinessStatus.timed_out else FailureKind.unreachable
        return AttemptFailure(
            kind,
            readiness.detail or readiness.status.value,
            index=index,
            description=description,
            cause=readiness.error,
        )

    @staticmethod
    def _action_failure(result: ActionResult, index: int, description: str) -> AttemptFailure:
        return AttemptFailure(
            FailureKind.action,
            result.detail or "action failed",
            index=index,
            description=description,
            cause=result.error,
        )

    @staticmethod
    def _error_failure(exc: Exception, index: int, description: str) -> AttemptFailure:
        return AttemptFailure(FailureKind.error, repr(exc), index=index, description=description, cause=exc)

    def _emit(self, index: Optional[int], description: str, payload: Any) -> None:
        if self.sink is None:
            return
        try:
            self.sink(index, description, payload)
        except Exception as e:
            log.warning(f"Attempt sink raised {e!r}; ignoring")

    def _finish_attempt(self, scoped, request: ActionRequest, record: AttemptRecord) -> bool:
        """Log + emit one attempt. Returns True when the loop should go on."""
        if record.succeeded:
            scoped.info(
                f"{request.kind.value} succeeded with candidate [{record.index}] {record.description} "
                f"({human_ms(record.elapsed_ms)})"
            )
            self._emit(record.index, record.description, record)
            return False

        failure = record.failure
        scoped.warning(
            f"{request.kind.value} candidate [{record.index}] {record.description} failed "
            f"({failure.kind.value}): {failure.message}"
        )
        self._emit(record.index, record.description, record)
        try:
            return bool(self.should_continue(failure))
        except Exception as e:
            scoped.warning(f"Continue policy raised {e!r}; moving on to the next candidate")
            return True

    def _give_up(self, scoped, request: ActionRequest, attempts: List[AttemptRecord], reason: FailureReason) -> ExecutionOutcome:
        outcome = ExecutionOutcome.failure(request.kind, attempts, reason)
        if reason is FailureReason.empty:
            summary = f"{request.kind.value}: no candidates given"
        else:
            tried = ", ".join(f"[{a.index}] {a.failure.kind.value}" for a in attempts if a.failure)
            summary = f"{request.kind.value} {reason.value} after {len(attempts)} candidate(s): {tried}"
        scoped.error(summary)
        self._emit(None, summary, outcome)
        return outcome


class ResilientActionExecutor(_ExecutorBase):
    """
    Blocking executor for engines built on a synchronous driver
    (e.g. playwright.sync_api).

    Usage:
        executor = ResilientActionExecutor(PlaywrightEngine(page))
        outcome = executor.execute("click", [by_role, by_test_id, by_text], timeout_ms=2000)
        outcome.raise_for_failure()
    """

    engine: ResolutionEngine

    def execute(
        self,
        kind: Union[ActionKind, str],
        candidates: Iterable[Any],
        value: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> ExecutionOutcome:
        request = self._request(kind, value, timeout_ms)
        items = list(candidates)
        scoped = log_with_context(log, action=request.kind.value)
        attempts: List[AttemptRecord] = []

        if not items:
            return self._give_up(scoped, request, attempts, FailureReason.empty)

        for idx, descriptor in enumerate(items):
            scoped.debug(f"Trying candidate {idx + 1}/{len(items)}")
            description = UNKNOWN_TARGET
            with Stopwatch() as sw:
                try:
                    target = self.engine.resolve(descriptor)
                    description = self._describe(target)
                    failure = self._attempt(request, target, idx, description)
                except Exception as e:
                    failure = self._error_failure(e, idx, description)
            record = AttemptRecord(idx, description, failure, sw.elapsed_ms())
            attempts.append(record)

            if not self._finish_attempt(scoped, request, record):
                if record.succeeded:
                    return ExecutionOutcome.success(request.kind, idx, attempts)
                if idx < len(items) - 1:
                    return self._give_up(scoped, request, attempts, FailureReason.aborted)

        return self._give_up(scoped, request, attempts, FailureReason.exhausted)

    def _attempt(self, request: ActionRequest, target: Any, index: int, description: str) -> Optional[AttemptFailure]:
        readiness = self.engine.wait_until_ready(target, request.kind.required_state, request.timeout_ms)
        if not readiness.ok:
            return self._readiness_failure(readiness, index, description)
        result = self.engine.perform(request.kind, target, request.value, request.timeout_ms)
        if not result.done:
            return self._action_failure(result, index, description)
        return None

    # ---------- Convenience (raise on failure) ----------

    def run(self, kind: Union[ActionKind, str], candidates: Iterable[Any], *, value: Optional[str] = None,
            timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return self.execute(kind, candidates, value=value, timeout_ms=timeout_ms).raise_for_failure()

    def click(self, candidates: Iterable[Any], *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return self.run(ActionKind.click, candidates, timeout_ms=timeout_ms)

    def fill(self, candidates: Iterable[Any], text: str, *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return self.run(ActionKind.fill, candidates, value=text, timeout_ms=timeout_ms)

    def hover(self, candidates: Iterable[Any], *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return self.run(ActionKind.hover, candidates, timeout_ms=timeout_ms)

    def check(self, candidates: Iterable[Any], *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return self.run(ActionKind.check, candidates, timeout_ms=timeout_ms)


class AsyncResilientActionExecutor(_ExecutorBase):
    """
    Awaitable executor for asyncio engines (e.g. playwright.async_api).

    Cancelling the task running `execute` cancels the engine call in flight;
    asyncio.CancelledError is never caught, so no further candidate is tried
    and the records gathered so far are dropped with the frame.
    """

    engine: AsyncResolutionEngine

    async def execute(
        self,
        kind: Union[ActionKind, str],
        candidates: Iterable[Any],
        value: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> ExecutionOutcome:
        request = self._request(kind, value, timeout_ms)
        items = list(candidates)
        scoped = log_with_context(log, action=request.kind.value)
        attempts: List[AttemptRecord] = []

        if not items:
            return self._give_up(scoped, request, attempts, FailureReason.empty)

        for idx, descriptor in enumerate(items):
            scoped.debug(f"[async] Trying candidate {idx + 1}/{len(items)}")
            description = UNKNOWN_TARGET
            with Stopwatch() as sw:
                try:
                    target = self.engine.resolve(descriptor)
                    if inspect.isawaitable(target):
                        target = await target
                    description = self._describe(target)
                    failure = await self._attempt(request, target, idx, description)
                except Exception as e:
                    failure = self._error_failure(e, idx, description)
            record = AttemptRecord(idx, description, failure, sw.elapsed_ms())
            attempts.append(record)

            if not self._finish_attempt(scoped, request, record):
                if record.succeeded:
                    return ExecutionOutcome.success(request.kind, idx, attempts)
                if idx < len(items) - 1:
                    return self._give_up(scoped, request, attempts, FailureReason.aborted)

        return self._give_up(scoped, request, attempts, FailureReason.exhausted)

    async def _attempt(self, request: ActionRequest, target: Any, index: int, description: str) -> Optional[AttemptFailure]:
        readiness = await self.engine.wait_until_ready(target, request.kind.required_state, request.timeout_ms)
        if not readiness.ok:
            return self._readiness_failure(readiness, index, description)
        result = await self.engine.perform(request.kind, target, request.value, request.timeout_ms)
        if not result.done:
            return self._action_failure(result, index, description)
        return None

    # ---------- Convenience (raise on failure) ----------

    async def run(self, kind: Union[ActionKind, str], candidates: Iterable[Any], *, value: Optional[str] = None,
                  timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        outcome = await self.execute(kind, candidates, value=value, timeout_ms=timeout_ms)
        return outcome.raise_for_failure()

    async def click(self, candidates: Iterable[Any], *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return await self.run(ActionKind.click, candidates, timeout_ms=timeout_ms)

    async def fill(self, candidates: Iterable[Any], text: str, *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return await self.run(ActionKind.fill, candidates, value=text, timeout_ms=timeout_ms)

    async def hover(self, candidates: Iterable[Any], *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return await self.run(ActionKind.hover, candidates, timeout_ms=timeout_ms)

    async def check(self, candidates: Iterable[Any], *, timeout_ms: Optional[int] = None) -> ExecutionOutcome:
        return await self.run(ActionKind.check, candidates, timeout_ms=timeout_ms)


__all__ = [
    "AttemptSink",
    "ContinuePolicy",
    "ResilientActionExecutor",
    "AsyncResilientActionExecutor",
]
