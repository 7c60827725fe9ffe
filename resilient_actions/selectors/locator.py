# resilient_actions/selectors/locator.py
from __future__ import annotations

import re
from typing import Any, Optional, Tuple

from resilient_actions.core.plan_loader import Selector, SelectorStrategy
from resilient_actions.utils.logger import get_logger

log = get_logger(__name__)


def _parse_role_value(value: str) -> Tuple[str, Optional[str]]:
    """
    Accept a few simple role notations for flexibility:

    - "button"                      → role="button"
    - "button|Create Project"       → role="button", name="Create Project"
    - "button name=Create Project"  → same as above (space syntax)
    - "textbox|Project name"        → role="textbox", name="Project name"

    Returns: (role, accessible_name_or_None)
    """
    v = value.strip()
    if "|" in v:
        role, name = v.split("|", 1)
        return role.strip(), name.strip() or None
    if " name=" in v:
        role, name = v.split(" name=", 1)
        return role.strip(), name.strip() or None
    return v, None


def resolve_locator(page: Any, sel: Selector) -> Any:
    """
    Convert a Selector into a Playwright Locator.

    Works with both sync and async Page objects: building a Locator is lazy in
    either API, nothing touches the browser until the locator is used.
    """
    strategy = sel.strategy
    value = sel.value

    if strategy == SelectorStrategy.css:
        return page.locator(value)

    if strategy == SelectorStrategy.text:
        if len(value) > 2 and value.startswith("/") and value.endswith("/"):
            return page.get_by_text(re.compile(value[1:-1]))
        return page.get_by_text(value, exact=False)

    if strategy == SelectorStrategy.role:
        role, name = _parse_role_value(value)
        kwargs = {}
        if name:
            kwargs["name"] = name
        return page.get_by_role(role, **kwargs)  # type: ignore[arg-type]

    if strategy == SelectorStrategy.xpath:
        return page.locator(f"xpath={value}")

    if strategy == SelectorStrategy.test_id:
        return page.get_by_test_id(value)

    if strategy == SelectorStrategy.label:
        return page.get_by_label(value, exact=False)

    if strategy == SelectorStrategy.placeholder:
        return page.get_by_placeholder(value, exact=False)

    log.debug(f"Unknown selector strategy '{strategy}', falling back to css for value={value!r}")
    return page.locator(value)
