from __future__ import annotations

from typing import Any, List, Optional, Tuple

import pytest

from resilient_actions.core.models import ActionKind, ActionResult, Readiness
from resilient_actions.utils.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class StubEngine:
    """
    Deterministic engine. Each descriptor is a (name, behaviour) pair where
    behaviour is one of: ok, timeout, unreachable, action-error, boom.
    """

    def __init__(self) -> None:
        self.resolved: List[str] = []
        self.waited: List[Tuple[str, str, int]] = []
        self.performed: List[Tuple[str, ActionKind, Optional[str], int]] = []

    def resolve(self, descriptor: Tuple[str, str]) -> Tuple[str, str]:
        self.resolved.append(descriptor[0])
        return descriptor

    def describe(self, target: Tuple[str, str]) -> str:
        return f"candidate {target[0]}"

    def wait_until_ready(self, target: Any, state: str, timeout_ms: int) -> Readiness:
        name, behaviour = target
        self.waited.append((name, state, timeout_ms))
        if behaviour == "timeout":
            return Readiness.timed_out(f"{name} not visible after {timeout_ms}ms")
        if behaviour == "unreachable":
            return Readiness.unreachable(f"{name} matched 3 elements")
        if behaviour == "boom":
            raise RuntimeError(f"{name} exploded")
        return Readiness.ready()

    def perform(self, kind: ActionKind, target: Any, value: Optional[str], timeout_ms: int) -> ActionResult:
        name, behaviour = target
        self.performed.append((name, kind, value, timeout_ms))
        if behaviour == "action-error":
            return ActionResult.failed(f"{name} detached from DOM")
        return ActionResult.ok()

    @property
    def touched(self) -> bool:
        return bool(self.resolved or self.waited or self.performed)


@pytest.fixture
def engine() -> StubEngine:
    return StubEngine()
