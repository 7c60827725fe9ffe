# resilient_actions/core/protocol.py
from __future__ import annotations

"""Engine capability contract
-----------------------------
The four operations the executor needs from an automation engine. Any object
with these methods works; the Playwright adapters live in
resilient_actions.selectors.playwright_engine.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from resilient_actions.core.models import ActionKind, ActionResult, Readiness


@runtime_checkable
class ResolutionEngine(Protocol):
    def resolve(self, descriptor: Any) -> Any:
        """Turn a candidate descriptor into a target reference. Lazy, never fails by itself."""
        ...

    def wait_until_ready(self, target: Any, state: str, timeout_ms: int) -> Readiness:
        ...

    def perform(self, kind: ActionKind, target: Any, value: Optional[str], timeout_ms: int) -> ActionResult:
        ...

    def describe(self, target: Any) -> str:
        """Best-effort label for logs; must not raise."""
        ...


@runtime_checkable
class AsyncResolutionEngine(Protocol):
    def resolve(self, descriptor: Any) -> Any:
        ...

    async def wait_until_ready(self, target: Any, state: str, timeout_ms: int) -> Readiness:
        ...

    async def perform(self, kind: ActionKind, target: Any, value: Optional[str], timeout_ms: int) -> ActionResult:
        ...

    def describe(self, target: Any) -> str:
        ...


__all__ = ["ResolutionEngine", "AsyncResolutionEngine"]
