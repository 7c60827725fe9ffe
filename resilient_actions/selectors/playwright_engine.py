# resilient_actions/selectors/playwright_engine.py
from __future__ import annotations

"""Playwright engines
---------------------
Adapters that expose a Playwright page through the four-call engine contract
the executor consumes. Playwright exceptions are folded into Readiness /
ActionResult values here so the executor never sees them.
"""

from typing import Any, Callable, Optional, Union

from playwright.async_api import Error as AsyncPWError
from playwright.async_api import Page as AsyncPage
from playwright.async_api import TimeoutError as AsyncPWTimeoutError
from playwright.sync_api import Error as PWError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PWTimeoutError

from resilient_actions.core.models import ActionKind, ActionResult, Readiness
from resilient_actions.core.plan_loader import Selector
from resilient_actions.selectors.locator import resolve_locator
from resilient_actions.utils.logger import get_logger

log = get_logger(__name__)

# A candidate is either a Selector model or a zero-argument callable
# producing a Locator (e.g. `lambda: page.get_by_role("button", name="Save")`).
Candidate = Union[Selector, Callable[[], Any]]

_TIMEOUT_ERRORS = (PWTimeoutError, AsyncPWTimeoutError)
_PW_ERRORS = (PWError, AsyncPWError)


def _first_line(exc: BaseException) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else exc.__class__.__name__


def _is_ambiguous(exc: BaseException) -> bool:
    return "strict mode violation" in str(exc)


def _readiness_from_error(exc: BaseException) -> Readiness:
    if isinstance(exc, _TIMEOUT_ERRORS):
        return Readiness.timed_out(_first_line(exc), exc)
    if _is_ambiguous(exc):
        return Readiness.unreachable(f"ambiguous: {_first_line(exc)}", exc)
    return Readiness.unreachable(_first_line(exc), exc)


def _describe_locator(target: Any) -> str:
    try:
        return str(target)
    except Exception:
        return "<locator>"


class _EngineBase:
    def __init__(self, page: Any) -> None:
        self.page = page

    def resolve(self, descriptor: Candidate) -> Any:
        # Re-materialise on every attempt; a Locator is only a query and holds no element handle
        if isinstance(descriptor, Selector):
            return resolve_locator(self.page, descriptor)
        if callable(descriptor):
            return descriptor()
        raise TypeError(f"Unsupported candidate descriptor: {descriptor!r}")

    def describe(self, target: Any) -> str:
        return _describe_locator(target)


class PlaywrightEngine(_EngineBase):
    """Engine over playwright.sync_api."""

    page: Page

    def wait_until_ready(self, target: Any, state: str, timeout_ms: int) -> Readiness:
        try:
            target.wait_for(state=state, timeout=timeout_ms)
        except _PW_ERRORS as e:
            return _readiness_from_error(e)
        return Readiness.ready()

    def perform(self, kind: ActionKind, target: Any, value: Optional[str], timeout_ms: int) -> ActionResult:
        try:
            if kind == ActionKind.click:
                target.click(timeout=timeout_ms)
            elif kind == ActionKind.fill:
                target.fill(value or "", timeout=timeout_ms)
            elif kind == ActionKind.hover:
                target.hover(timeout=timeout_ms)
            elif kind == ActionKind.check:
                target.check(timeout=timeout_ms)
            else:
                raise NotImplementedError(f"Unsupported action: {kind}")
        except _PW_ERRORS as e:
            return ActionResult.failed(_first_line(e), e)
        return ActionResult.ok()


class AsyncPlaywrightEngine(_EngineBase):
    """Engine over playwright.async_api."""

    page: AsyncPage

    async def wait_until_ready(self, target: Any, state: str, timeout_ms: int) -> Readiness:
        try:
            await target.wait_for(state=state, timeout=timeout_ms)
        except _PW_ERRORS as e:
            return _readiness_from_error(e)
        return Readiness.ready()

    async def perform(self, kind: ActionKind, target: Any, value: Optional[str], timeout_ms: int) -> ActionResult:
        try:
            if kind == ActionKind.click:
                await target.click(timeout=timeout_ms)
            elif kind == ActionKind.fill:
                await target.fill(value or "", timeout=timeout_ms)
            elif kind == ActionKind.hover:
                await target.hover(timeout=timeout_ms)
            elif kind == ActionKind.check:
                await target.check(timeout=timeout_ms)
            else:
                raise NotImplementedError(f"Unsupported action: {kind}")
        except _PW_ERRORS as e:
            return ActionResult.failed(_first_line(e), e)
        return ActionResult.ok()


__all__ = ["Candidate", "PlaywrightEngine", "AsyncPlaywrightEngine"]
