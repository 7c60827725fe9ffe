"""
Core package for resilient actions.
Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from resilient_actions.core.executor import ResilientActionExecutor
  from resilient_actions.core.plan_loader import load_plans_file, Plan
  from resilient_actions.core.runner import PlanRunner
"""

__all__: list[str] = []
