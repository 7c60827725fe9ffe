from __future__ import annotations

"""Plan runner
--------------
Opens a Playwright page, navigates to the plan URL and runs every step through
the resilient executor. Returns a small JSON-friendly result dict.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.sync_api import sync_playwright

from resilient_actions.core.errors import ConfigurationError, ExhaustionFailure
from resilient_actions.core.executor import ResilientActionExecutor
from resilient_actions.core.plan_loader import Plan
from resilient_actions.selectors.playwright_engine import PlaywrightEngine
from resilient_actions.utils.config import Settings, get_settings
from resilient_actions.utils.logger import (
    attach_file_logger,
    detach_file_logger,
    get_logger,
    log_with_context,
)


def _ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")


def run_steps(executor: ResilientActionExecutor, plan: Plan) -> Dict[str, Any]:
    """
    Run the plan's steps in order against an already-open page.

    A failing step stops the plan unless it is marked optional.
    """
    log = log_with_context(get_logger(__name__), plan=plan.name)
    steps: List[Dict[str, Any]] = []

    for idx, step in enumerate(plan.steps, start=1):
        log.info(f"Step {idx}/{len(plan.steps)}: {step.label} ({len(step.candidates)} candidate(s))")
        outcome = executor.execute(
            step.action,
            step.candidates,
            value=step.value,
            timeout_ms=step.timeout_ms or plan.timeout_ms,
        )
        entry = {"index": idx, "name": step.label, **outcome.to_dict()}
        steps.append(entry)
        if outcome.ok:
            continue
        if step.optional:
            log.warning(f"Optional step {idx} failed; continuing")
            continue
        try:
            outcome.raise_for_failure()
        except (ConfigurationError, ExhaustionFailure) as e:
            return {
                "ok": False,
                "plan": plan.name,
                "steps": steps,
                "error": str(e),
                "error_type": e.__class__.__name__,
                "failed_step": {"index": idx, "action": step.action.value, "name": step.name},
            }

    return {"ok": True, "plan": plan.name, "steps": steps}


class PlanRunner:
    """Runs plans against a fresh browser context each time."""

    def __init__(self, settings: Optional[Settings] = None, log_dir: Optional[Path] = None):
        self.settings = settings or get_settings()
        self.log_dir = log_dir
        self.log = get_logger(__name__)

    def run_plan(self, plan: Plan) -> dict:
        s = self.settings
        handler = None
        if self.log_dir is not None:
            handler = attach_file_logger(Path(self.log_dir) / plan.name / f"{_ts()}.log")
        try:
            with sync_playwright() as p:
                browser_type = getattr(p, s.BROWSER_TYPE.value)
                browser = browser_type.launch(**s.playwright_launch_kwargs())
                try:
                    context = browser.new_context(**s.playwright_context_kwargs())
                    page = context.new_page()
                    self.log.info(f"Opening {plan.url} for plan '{plan.name}' (steps={len(plan.steps)})")
                    page.goto(plan.url, wait_until="domcontentloaded", timeout=s.PAGE_LOAD_TIMEOUT)
                    executor = ResilientActionExecutor(
                        PlaywrightEngine(page),
                        default_timeout_ms=s.DEFAULT_ATTEMPT_TIMEOUT_MS,
                    )
                    return run_steps(executor, plan)
                finally:
                    browser.close()
        except Exception as e:
            self.log.exception(f"Plan '{plan.name}' crashed:")
            return {"ok": False, "plan": plan.name, "steps": [], "error": str(e), "error_type": e.__class__.__name__}
        finally:
            if handler is not None:
                detach_file_logger(handler)
