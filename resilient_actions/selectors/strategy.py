# resilient_actions/selectors/strategy.py
from __future__ import annotations

from typing import Optional, Sequence

from playwright.sync_api import Page

from resilient_actions.core.executor import AttemptSink, ResilientActionExecutor
from resilient_actions.core.models import ExecutionOutcome
from resilient_actions.core.plan_loader import Selector
from resilient_actions.selectors.playwright_engine import Candidate, PlaywrightEngine
from resilient_actions.utils.config import get_settings


class LocatorStrategy:
    """
    Multi-selector fallback bound to one page:
      - Try candidates in order, most stable first
      - Each candidate gets `per_attempt_timeout_ms` to become visible and take the action
      - First success wins; otherwise ExhaustionFailure lists every candidate and why it failed

    Usage:
        strategy = LocatorStrategy(page)
        strategy.click([Selector(strategy="role", value="button|Save"), "test_id=save", "text=Save"])
    """

    def __init__(
        self,
        page: Page,
        *,
        per_attempt_timeout_ms: Optional[int] = None,
        sink: Optional[AttemptSink] = None,
    ) -> None:
        self.page = page
        if per_attempt_timeout_ms is None:
            per_attempt_timeout_ms = get_settings().DEFAULT_ATTEMPT_TIMEOUT_MS
        self.per_attempt_timeout_ms = per_attempt_timeout_ms
        self.executor = ResilientActionExecutor(
            PlaywrightEngine(page),
            sink=sink,
            default_timeout_ms=self.per_attempt_timeout_ms,
        )

    # ---------- Convenience Actions (with fallback) ----------

    def click(self, candidates: Sequence[Candidate]) -> ExecutionOutcome:
        return self.executor.click(_coerce(candidates))

    def fill(self, candidates: Sequence[Candidate], text: str) -> ExecutionOutcome:
        return self.executor.fill(_coerce(candidates), text)

    def hover(self, candidates: Sequence[Candidate]) -> ExecutionOutcome:
        return self.executor.hover(_coerce(candidates))

    def check(self, candidates: Sequence[Candidate]) -> ExecutionOutcome:
        return self.executor.check(_coerce(candidates))


def _coerce(candidates: Sequence[Candidate | str]) -> list[Candidate]:
    # plain strings use the Selector shorthand ("role=button|Save", "#id")
    return [Selector.model_validate(c) if isinstance(c, str) else c for c in candidates]
