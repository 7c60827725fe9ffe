from pathlib import Path
import json
import textwrap

from click.testing import CliRunner

from resilient_actions.cli import cli


def write_multi_doc_yaml(tmp_path: Path) -> Path:
    y = textwrap.dedent(
        """
        name: alpha
        url: "https://demo.app/alpha"
        steps:
          - action: click
            candidates: ["role=button|Go", "#go"]
        ---
        name: beta
        url: "https://demo.app/beta"
        steps:
          - action: fill
            value: hi
            candidates: ["#q"]
        """
    )
    p = tmp_path / "demo.yaml"
    p.write_text(y, encoding="utf-8")
    return p


def test_cli_validate_with_dir(tmp_path: Path):
    write_multi_doc_yaml(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", "--dir", str(tmp_path), "--no-recursive"])
    assert result.exit_code == 0
    assert result.output.count("OK  ") == 2


def test_cli_validate_dir_argument_honours_no_recursive(tmp_path: Path):
    write_multi_doc_yaml(tmp_path)
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "deep.yaml").write_text("name: deep\nurl: \"https://demo.app/deep\"\nsteps: []\n", encoding="utf-8")

    flat = CliRunner().invoke(cli, ["validate", str(tmp_path), "--no-recursive"])
    deep = CliRunner().invoke(cli, ["validate", str(tmp_path)])

    assert flat.exit_code == 0
    assert "deep.yaml" not in flat.output
    assert "deep.yaml" in deep.output


def test_cli_validate_reports_errors(tmp_path: Path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("name: x\nurl: not-a-url\nsteps: []\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["validate", str(bad)])
    assert result.exit_code == 1
    assert "ERR" in result.output


def test_cli_config_prints_json():
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 0
    assert "DEFAULT_ATTEMPT_TIMEOUT_MS" in json.loads(result.output)


def test_cli_run_monkeypatch_runner(tmp_path: Path, monkeypatch):
    wf = write_multi_doc_yaml(tmp_path)
    seen = {}

    class FakeRunner:
        def __init__(self, settings=None, log_dir=None):
            seen["timeout"] = settings.DEFAULT_ATTEMPT_TIMEOUT_MS

        def run_plan(self, plan):
            if plan.name == "alpha":
                return {
                    "ok": True,
                    "plan": plan.name,
                    "steps": [{"name": "click", "ok": True, "candidate_index": 1, "attempts": []}],
                }
            return {
                "ok": False,
                "plan": plan.name,
                "steps": [{
                    "name": "fill",
                    "ok": False,
                    "reason": "exhausted",
                    "attempts": [{"index": 0, "kind": "timeout", "error": "Timeout 10ms exceeded."}],
                }],
                "error": "fill failed on all 1 candidate(s)",
                "error_type": "ExhaustionFailure",
            }

    monkeypatch.setattr("resilient_actions.core.runner.PlanRunner", FakeRunner)
    out = tmp_path / "summary.json"

    result = CliRunner().invoke(cli, ["run", str(wf), "--timeout-ms", "10", "--json-out", str(out)])

    assert result.exit_code == 1
    assert seen["timeout"] == 10
    assert "candidate [1]" in result.output
    assert "ExhaustionFailure" in result.output
    assert "Done. OK=1  FAIL=1" in result.output
    assert len(json.loads(out.read_text())["results"]) == 2
