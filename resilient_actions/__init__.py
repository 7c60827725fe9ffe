"""
resilient_actions
-----------------
Try a UI action (click, fill, ...) against an ordered list of candidate
locators until one works, and report every failed candidate when none does.
"""

from resilient_actions.core.errors import (
    AttemptFailure,
    ConfigurationError,
    ExhaustionFailure,
    FailureKind,
)
from resilient_actions.core.executor import (
    AsyncResilientActionExecutor,
    ResilientActionExecutor,
)
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

__all__ = [
    "ActionKind",
    "ActionRequest",
    "ActionResult",
    "AsyncResilientActionExecutor",
    "AsyncResolutionEngine",
    "AttemptFailure",
    "AttemptRecord",
    "ConfigurationError",
    "ExecutionOutcome",
    "ExhaustionFailure",
    "FailureKind",
    "FailureReason",
    "Readiness",
    "ReadinessStatus",
    "ResilientActionExecutor",
    "ResolutionEngine",
]
