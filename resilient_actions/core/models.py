# resilient_actions/core/models.py
from __future__ import annotations

"""Executor data model
----------------------
Action requests, per-attempt records, the execution outcome, and the
discriminated results the automation engine hands back.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from resilient_actions.core.errors import (
    AttemptFailure,
    ConfigurationError,
    ExhaustionFailure,
)


# ---------- Actions ----------


class ActionKind(str, Enum):
    click = "click"
    fill = "fill"
    hover = "hover"
    check = "check"

    @property
    def required_state(self) -> str:
        # every supported action needs an attached, visible target
        return "visible"

    @property
    def needs_value(self) -> bool:
        return self is ActionKind.fill


@dataclass(frozen=True)
class ActionRequest:
    kind: ActionKind
    timeout_ms: int
    value: Optional[str] = None

    def validate(self) -> "ActionRequest":
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, (int, float)):
            raise ConfigurationError(f"timeout_ms must be a number, got {self.timeout_ms!r}")
        # NaN compares false both ways, so test for the positive case
        if not (self.timeout_ms > 0) or math.isinf(self.timeout_ms):
            raise ConfigurationError(f"timeout_ms must be a positive finite number, got {self.timeout_ms}")
        if self.kind.needs_value and self.value is None:
            raise ConfigurationError(f"{self.kind.value} requires a value")
        return self


# ---------- Engine results ----------


class ReadinessStatus(str, Enum):
    ready = "ready"
    timed_out = "timed_out"
    unreachable = "unreachable"


@dataclass(frozen=True)
class Readiness:
    status: ReadinessStatus
    detail: str = ""
    error: Optional[BaseException] = None

    @classmethod
    def ready(cls) -> "Readiness":
        return cls(ReadinessStatus.ready)

    @classmethod
    def timed_out(cls, detail: str = "", error: Optional[BaseException] = None) -> "Readiness":
        return cls(ReadinessStatus.timed_out, detail, error)

    @classmethod
    def unreachable(cls, detail: str = "", error: Optional[BaseException] = None) -> "Readiness":
        return cls(ReadinessStatus.unreachable, detail, error)

    @property
    def ok(self) -> bool:
        return self.status is ReadinessStatus.ready


@dataclass(frozen=True)
class ActionResult:
    done: bool
    detail: str = ""
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls) -> "ActionResult":
        return cls(True)

    @classmethod
    def failed(cls, detail: str, error: Optional[BaseException] = None) -> "ActionResult":
        return cls(False, detail, error)


# ---------- Attempts & outcome ----------


@dataclass(frozen=True)
class AttemptRecord:
    index: int
    description: str
    failure: Optional[AttemptFailure] = None
    elapsed_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "index": self.index,
            "description": self.description,
            "ok": self.succeeded,
            "elapsed_ms": self.elapsed_ms,
        }
        if self.failure is not None:
            d["kind"] = self.failure.kind.value
            d["error"] = self.failure.message
        return d


class FailureReason(str, Enum):
    empty = "empty"
    exhausted = "exhausted"
    aborted = "aborted"


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of one execution: Success(candidate_index) or Failure(attempts).

    `attempts` is kept on both variants so callers can see which strategies
    were passed over before the winner.
    """

    action: ActionKind
    candidate_index: Optional[int] = None
    attempts: Tuple[AttemptRecord, ...] = field(default_factory=tuple)
    reason: Optional[FailureReason] = None

    @classmethod
    def success(cls, action: ActionKind, index: int, attempts: List[AttemptRecord]) -> "ExecutionOutcome":
        return cls(action=action, candidate_index=index, attempts=tuple(attempts))

    @classmethod
    def failure(cls, action: ActionKind, attempts: List[AttemptRecord], reason: FailureReason) -> "ExecutionOutcome":
        return cls(action=action, attempts=tuple(attempts), reason=reason)

    @property
    def ok(self) -> bool:
        return self.candidate_index is not None

    @property
    def failures(self) -> List[AttemptFailure]:
        return [a.failure for a in self.attempts if a.failure is not None]

    def raise_for_failure(self) -> "ExecutionOutcome":
        """Return self on success; raise the matching boundary error otherwise."""
        if self.ok:
            return self
        if self.reason is FailureReason.empty:
            raise ConfigurationError(f"{self.action.value}: no candidates given")
        raise ExhaustionFailure(
            self.action.value,
            self.failures,
            aborted=self.reason is FailureReason.aborted,
        )

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "ok": self.ok,
            "candidate_index": self.candidate_index,
            "reason": self.reason.value if self.reason else None,
            "attempts": [a.to_dict() for a in self.attempts],
        }


__all__ = [
    "ActionKind",
    "ActionRequest",
    "ReadinessStatus",
    "Readiness",
    "ActionResult",
    "AttemptRecord",
    "FailureReason",
    "ExecutionOutcome",
]
