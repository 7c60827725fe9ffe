from pathlib import Path
import textwrap

import pytest

from resilient_actions.core.models import ActionKind
from resilient_actions.core.plan_loader import (
    Selector,
    SelectorStrategy,
    load_plans_file,
)


def write(tmp_path: Path, body: str, name: str = "plan.yaml") -> Path:
    p = tmp_path / name
    p.write_text(textwrap.dedent(body), encoding="utf-8")
    return p


def test_load_plans_file_multiple_docs(tmp_path: Path):
    f = write(
        tmp_path,
        """
        name: login
        url: "https://example.com/login"
        steps:
          - action: fill
            value: alice
            candidates:
              - label=Username
              - "#username"
          - action: click
            candidates:
              - {strategy: role, value: "button|Sign in"}
              - test_id=login-submit
        ---
        name: logout
        url: "https://example.com/"
        timeout_ms: 1500
        steps:
          - action: click
            candidates: ["text=Log out"]
        """,
        name="multi.yaml",
    )

    plans = load_plans_file(f)
    assert [p.name for p in plans] == ["login", "logout"]

    fill, click = plans[0].steps
    assert fill.action is ActionKind.fill and fill.value == "alice"
    assert fill.candidates[0] == Selector(strategy=SelectorStrategy.label, value="Username")
    assert fill.candidates[1].strategy is SelectorStrategy.css
    assert [c.strategy for c in click.candidates] == [SelectorStrategy.role, SelectorStrategy.test_id]
    assert plans[1].timeout_ms == 1500


def test_css_with_equals_stays_css():
    sel = Selector.model_validate("input[name=email]")
    assert sel.strategy is SelectorStrategy.css
    assert str(sel) == "css=input[name=email]"


def test_env_substitution(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("APP_USER", "bob")
    f = write(
        tmp_path,
        """
        url: "https://example.com"
        steps:
          - action: fill
            value: "${APP_USER}"
            candidates: ["#user"]
        """,
    )
    plan, = load_plans_file(f)
    assert plan.name == "plan"
    assert plan.steps[0].value == "bob"


def test_fill_without_value_is_rejected(tmp_path: Path):
    f = write(
        tmp_path,
        """
        url: "https://example.com"
        steps:
          - action: fill
            candidates: ["#user"]
        """,
    )
    with pytest.raises(ValueError) as excinfo:
        load_plans_file(f)
    assert "needs a value" in str(excinfo.value)


def test_non_positive_step_timeout_is_rejected(tmp_path: Path):
    f = write(
        tmp_path,
        """
        url: "https://example.com"
        steps:
          - action: click
            timeout_ms: 0
            candidates: ["#go"]
        """,
    )
    with pytest.raises(ValueError) as excinfo:
        load_plans_file(f)
    assert "steps.0.timeout_ms" in str(excinfo.value)


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_plans_file("/nonexistent/plan.yaml")
