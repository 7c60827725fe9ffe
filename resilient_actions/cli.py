# resilient_actions/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Validate and run action plans, and view effective config.
Thin wrapper around the plan loader and runner for local runs.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import click

from resilient_actions.core.plan_loader import Plan, find_plan_files, load_plans_file
from resilient_actions.utils.config import get_settings
from resilient_actions.utils.logger import bind, get_logger, set_log_level, unbind


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _collect_files(targets: List[str], plans_dir: Optional[str], recursive: bool) -> List[Path]:
    paths: List[Path] = []
    for p in (Path(t).resolve() for t in targets):
        if p.is_dir():
            paths.extend(find_plan_files(p, recursive=recursive))
        else:
            paths.append(p)
    if plans_dir:
        paths.extend(find_plan_files(Path(plans_dir), recursive=recursive))
    return paths


def _describe_step(step: dict) -> str:
    if step.get("ok"):
        return f"    ok   {step['name']}  -> candidate [{step['candidate_index']}]"
    tried = "; ".join(
        f"[{a['index']}] {a.get('kind', '?')}: {a.get('error', '')}" for a in step.get("attempts", [])
    )
    return f"    FAIL {step['name']}  ({step.get('reason')})  {tried or 'no candidates'}"


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="resilient-actions")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    s = get_settings()
    _echo_json(s.model_dump(mode="json"))


@cli.command("validate")
@click.argument("targets", nargs=-1, required=False)
@click.option("--dir", "plans_dir", type=click.Path(file_okay=False, dir_okay=True, exists=True),
              help="Validate all plans under this directory")
@click.option("--recursive/--no-recursive", default=True, show_default=True)
def cmd_validate(targets: List[str], plans_dir: Optional[str], recursive: bool):
    """Validate plan files or a directory (supports multi-doc YAML)."""
    if not targets and not plans_dir:
        click.echo("Provide file(s) or --dir to validate.")
        sys.exit(2)

    ok = True
    for fp in _collect_files(list(targets), plans_dir, recursive):
        try:
            for plan in load_plans_file(fp):
                click.echo(f"OK  {fp}  ->  {plan.name} ({len(plan.steps)} steps)")
        except Exception as e:
            ok = False
            click.echo(f"ERR {fp}  ->  {e}")

    sys.exit(0 if ok else 1)


@cli.command("run")
@click.argument("targets", nargs=-1, required=False)
@click.option("--dir", "plans_dir", type=click.Path(file_okay=False, dir_okay=True, exists=True),
              help="Run all plans found under this directory")
@click.option("--recursive/--no-recursive", default=True, show_default=True)
@click.option("--headed", is_flag=True, default=False, help="Show the browser window")
@click.option("--timeout-ms", type=click.IntRange(min=1), default=None,
              help="Override DEFAULT_ATTEMPT_TIMEOUT_MS from settings")
@click.option("--log-dir", type=click.Path(file_okay=False), default=None, help="Write a JSON log per plan run here")
@click.option("--json-out", type=click.Path(dir_okay=False), default=None, help="Write a JSON summary to this file")
def cmd_run(
    targets: List[str],
    plans_dir: Optional[str],
    recursive: bool,
    headed: bool,
    timeout_ms: Optional[int],
    log_dir: Optional[str],
    json_out: Optional[str],
):
    """
    Run one or more action plans.

    Examples:
      resilient-actions run plans/login.yaml
      resilient-actions run --dir plans --timeout-ms 2000
    """
    if not targets and not plans_dir:
        click.echo("Nothing to run. Provide file(s) or --dir.")
        sys.exit(2)

    settings = get_settings()
    overrides = {}
    if headed:
        overrides["HEADLESS"] = False
    if timeout_ms is not None:
        overrides["DEFAULT_ATTEMPT_TIMEOUT_MS"] = timeout_ms
    if overrides:
        settings = settings.model_copy(update=overrides)

    plans: List[Plan] = []
    for fp in _collect_files(list(targets), plans_dir, recursive):
        try:
            plans.extend(load_plans_file(fp))
        except Exception as e:
            click.echo(f"ERR {fp}  ->  {e}")
            sys.exit(1)

    if not plans:
        click.echo("No plans matched.")
        sys.exit(1)

    from resilient_actions.core.runner import PlanRunner  # local import keeps playwright off the validate path

    log = get_logger(__name__)
    bind(run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"))
    click.echo(f"Running {len(plans)} plan(s)...")

    runner = PlanRunner(settings=settings, log_dir=Path(log_dir) if log_dir else None)
    results: List[dict] = []
    for plan in plans:
        res = runner.run_plan(plan)
        results.append(res)
        status = "OK " if res.get("ok") else "ERR"
        click.echo(f"{status} {plan.name}")
        for step in res.get("steps", []):
            click.echo(_describe_step(step))
        if not res.get("ok"):
            prefix = f"{res['error_type']}: " if res.get("error_type") else ""
            click.echo(f"    {prefix}{res.get('error', 'unknown error')}")
            log.debug(f"Plan '{plan.name}' failed: {res.get('error')}")

    ok_count = sum(1 for r in results if r.get("ok"))
    fail_count = len(results) - ok_count
    click.echo(f"Done. OK={ok_count}  FAIL={fail_count}")

    if json_out:
        outp = Path(json_out).resolve()
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_text(json.dumps({"results": results}, indent=2), encoding="utf-8")
        click.echo(f"Wrote summary: {outp}")

    unbind("run_id")
    sys.exit(0 if fail_count == 0 else 1)


def main() -> None:
    cli(prog_name="resilient-actions")


if __name__ == "__main__":
    main()
