# resilient_actions/core/errors.py
from __future__ import annotations

"""Error taxonomy
-----------------
Only ConfigurationError and ExhaustionFailure leave the executor; AttemptFailure
is captured per candidate and carried inside attempt records.
"""

from enum import Enum
from typing import List, Optional, Sequence


class ConfigurationError(ValueError):
    """Caller passed something unusable (no candidates, bad timeout, missing value)."""


class FailureKind(str, Enum):
    timeout = "timeout"
    unreachable = "unreachable"
    action = "action"
    error = "error"


class AttemptFailure(RuntimeError):
    """Why a single candidate did not work out."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        *,
        index: int,
        description: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"[{index}] {kind.value}: {description} -> {message}")
        self.kind = kind
        self.message = message
        self.index = index
        self.description = description
        if cause is not None:
            self.__cause__ = cause


class ExhaustionFailure(RuntimeError):
    """
    Every candidate was tried and none worked.

    `failures` keeps the per-candidate causes in the order they were tried;
    the last one is the primary cause and is chained as `__cause__`.
    """

    def __init__(self, action: str, failures: Sequence[AttemptFailure], *, aborted: bool = False) -> None:
        self.action = action
        self.failures: List[AttemptFailure] = list(failures)
        self.aborted = aborted
        verb = "aborted after" if aborted else "failed on all"
        lines = [f"{action} {verb} {len(self.failures)} candidate(s). Tried:"]
        lines.extend(f"  {f}" for f in self.failures)
        super().__init__("\n".join(lines))
        if self.failures:
            self.__cause__ = self.failures[-1]

    @property
    def cause(self) -> Optional[AttemptFailure]:
        return self.failures[-1] if self.failures else None


__all__ = [
    "ConfigurationError",
    "FailureKind",
    "AttemptFailure",
    "ExhaustionFailure",
]
