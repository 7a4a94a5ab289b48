"""End-to-end runs of ``wa-review analyze`` against the bundled fixtures."""

from __future__ import annotations

import io
import json
import shutil
from collections import Counter
from contextlib import redirect_stdout
from pathlib import Path

import pytest

from wa_review.cli import app

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"
SOURCE_DIR = FIXTURES / "source"
PLAN_JSON = FIXTURES / "plan-example.json"
SUPPRESSIONS = FIXTURES / "wa-review.yaml"

EXPECTED_RULES = Counter({"VPC-001": 1, "S3-001": 1, "S3-012": 1, "RDS-001": 1, "S3-003": 1, "VPC-007": 1})


def invoke_cli(args: list[str]) -> tuple[int, str]:
    stdout = io.StringIO()
    with redirect_stdout(stdout):
        exit_code = app.main(args)
    return exit_code, stdout.getvalue()


def analyze_json(target: Path, tmp_path: Path, *extra: str) -> tuple[int, dict]:
    args = ["analyze", str(target), "--format", "json", "--config", str(tmp_path / "absent.yaml"), *extra]
    exit_code, output = invoke_cli(args)
    return exit_code, json.loads(output)


def _strip_module(address: str) -> str:
    return address.replace("module.network.", "")


def test_source_directory_findings(tmp_path: Path) -> None:
    exit_code, payload = analyze_json(SOURCE_DIR, tmp_path)

    assert exit_code == 1
    assert payload["metadata"]["input"] == "source"
    assert payload["summary"]["total_resources"] == 7
    assert Counter(finding["rule_id"] for finding in payload["findings"]) == EXPECTED_RULES
    assert payload["findings"][0]["rule_id"] == "VPC-001"
    assert payload["findings"][0]["resource"] == "aws_security_group.bastion"
    assert payload["findings"][0]["file"].endswith("network.tf")
    assert payload["summary"]["highest_severity"] == "CRITICAL"
    assert payload["faults"] == []
    assert payload["parse_errors"] == []


def test_plan_json_findings(tmp_path: Path) -> None:
    exit_code, payload = analyze_json(PLAN_JSON, tmp_path)

    assert exit_code == 1
    assert payload["metadata"]["input"] == "plan"
    assert payload["summary"]["total_resources"] == 6
    assert Counter(finding["rule_id"] for finding in payload["findings"]) == EXPECTED_RULES
    vpc_findings = [finding for finding in payload["findings"] if finding["rule_id"] == "VPC-007"]
    assert vpc_findings[0]["resource"] == "module.network.aws_vpc.main"
    assert vpc_findings[0]["file"] == "tfplan"


def test_plan_and_source_agree(tmp_path: Path) -> None:
    _, from_source = analyze_json(SOURCE_DIR, tmp_path)
    _, from_plan = analyze_json(PLAN_JSON, tmp_path)

    def verdicts(payload: dict) -> list[tuple[str, str]]:
        return sorted((finding["rule_id"], _strip_module(finding["resource"])) for finding in payload["findings"])

    assert verdicts(from_source) == verdicts(from_plan)


def test_suppression_file_is_applied(tmp_path: Path) -> None:
    exit_code, output = invoke_cli(["analyze", str(SOURCE_DIR), "--format", "json", "--config", str(SUPPRESSIONS)])
    payload = json.loads(output)

    assert exit_code == 1
    assert sorted(finding["rule_id"] for finding in payload["findings"]) == ["RDS-001", "S3-003", "S3-012", "VPC-001"]
    assert payload["summary"]["suppressed_findings"] == 2
    assert payload["summary"]["expired_suppressions"] == ["*/aws_vpc.main (expired 2020-01-01)"]


def test_filters_narrow_the_run(tmp_path: Path) -> None:
    exit_code, payload = analyze_json(
        SOURCE_DIR, tmp_path, "--min-severity", "high", "--exclude", "VPC-001", "--fail-on", "critical"
    )

    assert exit_code == 0
    assert sorted(finding["rule_id"] for finding in payload["findings"]) == ["RDS-001", "S3-001", "S3-012"]
    assert "VPC-001" not in [rule["id"] for rule in payload["rule_metadata"]]


def test_broken_file_is_skipped_when_others_parse(tmp_path: Path) -> None:
    workdir = tmp_path / "infra"
    shutil.copytree(SOURCE_DIR, workdir)
    shutil.copy(FIXTURES / "broken.tf", workdir / "broken.tf")

    exit_code, payload = analyze_json(workdir, tmp_path)

    assert exit_code == 1
    assert payload["summary"]["total_resources"] == 7
    assert len(payload["parse_errors"]) == 1
    assert "broken.tf" in payload["parse_errors"][0]


@pytest.mark.parametrize(
    "target",
    [FIXTURES / "broken.tf", FIXTURES / "missing-dir", FIXTURES / "wa-review.yaml"],
)
def test_unusable_input_exits_with_status_two(target: Path, tmp_path: Path, capsys) -> None:
    exit_code = app.main(["analyze", str(target), "--config", str(tmp_path / "absent.yaml")])

    assert exit_code == 2
    assert capsys.readouterr().err.startswith("Error: ")


def test_malformed_suppression_file_exits_with_status_two(tmp_path: Path, capsys) -> None:
    config = tmp_path / "bad.yaml"
    config.write_text("suppressions:\n  - rule_id: S3-001\n", encoding="utf-8")

    exit_code = app.main(["analyze", str(SOURCE_DIR), "--config", str(config)])

    assert exit_code == 2
    assert "resource is required" in capsys.readouterr().err
