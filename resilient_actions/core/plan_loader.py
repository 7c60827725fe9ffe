# resilient_actions/core/plan_loader.py
from __future__ import annotations

"""Action plan schema and loader
--------------------------------
Defines the pydantic models for candidate selectors and plan steps, and loads
YAML plans (single or multi-document) with ${ENV} substitution.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional
import os
import re

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from resilient_actions.core.models import ActionKind


# ---------- Core enums ----------


class SelectorStrategy(str, Enum):
    css = "css"
    text = "text"
    role = "role"
    xpath = "xpath"
    test_id = "test_id"
    label = "label"
    placeholder = "placeholder"


# ---------- Shared tiny models ----------


class Selector(BaseModel):
    value: str = Field(..., description="Selector string, interpreted per strategy")
    strategy: SelectorStrategy = Field(default=SelectorStrategy.css)

    model_config = {"frozen": True}

    @field_validator("value")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("selector.value cannot be empty")
        return v

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, data: Any) -> Any:
        # "role=button|Save" / "test_id=save-btn" / plain css string
        if isinstance(data, str):
            head, sep, tail = data.partition("=")
            if sep and head in SelectorStrategy.__members__:
                return {"strategy": head, "value": tail}
            return {"strategy": "css", "value": data}
        return data

    def __str__(self) -> str:
        return f"{self.strategy.value}={self.value}"


# ---------- Plan models ----------


class PlanStep(BaseModel):
    action: ActionKind
    candidates: list[Selector] = Field(..., description="Ordered, most stable strategy first")
    name: Optional[str] = Field(default=None, description="Human-friendly step label")
    value: Optional[str] = Field(default=None, description="Payload for fill")
    timeout_ms: Optional[int] = Field(default=None, gt=0, description="Per-candidate patience")
    optional: bool = Field(default=False, description="If true, ignore failure and continue")

    @model_validator(mode="after")
    def _value_for_fill(self) -> "PlanStep":
        if self.action.needs_value and self.value is None:
            raise ValueError(f"{self.action.value} step needs a value")
        return self

    @property
    def label(self) -> str:
        return self.name or self.action.value


class Plan(BaseModel):
    version: str = Field(default="1")
    name: str = Field(..., description="Plan name, e.g. 'login'")
    url: str = Field(..., description="Page to open before the first step")
    description: Optional[str] = None
    timeout_ms: Optional[int] = Field(default=None, gt=0, description="Default per-candidate patience")
    steps: list[PlanStep]

    @field_validator("name")
    @classmethod
    def _name_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("url")
    @classmethod
    def _url_absolute(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://", "file://", "data:")):
            raise ValueError("url must be absolute (http(s)://, file:// or data:)")
        return v


# ---------- Loading ----------

_ENV_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _subst_env(obj: Any) -> Any:
    if isinstance(obj, str):
        return _ENV_RE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    if isinstance(obj, list):
        return [_subst_env(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _subst_env(v) for k, v in obj.items()}
    return obj


def _format_validation_error(ve: ValidationError, header: str) -> str:
    lines = [header]
    for e in ve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []))
        msg = e.get("msg", "invalid value")
        lines.append(f"  - {loc}: {msg}")
    return "\n".join(lines)


def load_plans_file(path: Path | str) -> list[Plan]:
    """Load one or more plans from a YAML file (supports multi-document)."""
    plan_path = Path(path)
    if not plan_path.exists():
        raise FileNotFoundError(f"Plan file not found: {plan_path}")
    try:
        docs = list(yaml.safe_load_all(plan_path.read_text(encoding="utf-8")))
    except yaml.YAMLError as ye:
        raise ValueError(f"YAML parse error in {plan_path}: {ye}") from ye

    out: list[Plan] = []
    for idx, data in enumerate(docs, start=1):
        if data is None:
            continue
        if not isinstance(data, dict):
            raise ValueError(f"Document {idx} in {plan_path} must be a mapping/object.")
        data.setdefault("name", plan_path.stem if len(docs) == 1 else f"{plan_path.stem}-{idx}")
        try:
            out.append(Plan.model_validate(_subst_env(data)))
        except ValidationError as ve:
            raise ValueError(_format_validation_error(ve, f"Invalid plan '{plan_path}' (document {idx}):")) from ve
    if not out:
        raise ValueError(f"No valid plan documents found in {plan_path}")
    return out


def find_plan_files(root: Path, recursive: bool = True) -> list[Path]:
    if recursive:
        return sorted(list(root.rglob("*.yaml")) + list(root.rglob("*.yml")))
    return sorted(list(root.glob("*.yaml")) + list(root.glob("*.yml")))


__all__ = [
    "SelectorStrategy",
    "Selector",
    "PlanStep",
    "Plan",
    "load_plans_file",
    "find_plan_files",
]
