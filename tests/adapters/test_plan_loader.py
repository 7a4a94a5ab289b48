import json
import os
import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from wa_review.adapters import PlanLoader, PlanLoaderError
from wa_review.errors import InputError, PlanParseError
from wa_review.normalization import PlanNormalizer

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def test_json_artifact_is_returned_undecoded(tmp_path):
    plan_path = FIXTURES / "plan-minimal.json"
    loader = PlanLoader(working_dir=tmp_path, plan_json_path=plan_path)

    data = loader.load_plan()

    assert data == plan_path.read_bytes()
    assert json.loads(data)["planned_values"]["root_module"]["resources"] == []


def test_invalid_artifact_is_rejected_by_the_normalizer(tmp_path):
    artifact = tmp_path / "plan.json"
    artifact.write_text("{not json", encoding="utf-8")

    document = PlanLoader(working_dir=tmp_path, plan_json_path=artifact).load_plan()

    with pytest.raises(PlanParseError):
        PlanNormalizer().parse(document)


def test_load_plan_from_plan_file(monkeypatch, tmp_path):
    plan_file = tmp_path / "saved-plan.tfplan"
    plan_file.write_text("", encoding="utf-8")

    recorded = {}

    def fake_run(self, args, cwd=None, env=None):
        recorded["args"] = args
        recorded["cwd"] = cwd
        recorded["env"] = env
        return SimpleNamespace(stdout=json.dumps({"format_version": "1.0"}))

    monkeypatch.setattr(PlanLoader, "_run_command", fake_run)

    loader = PlanLoader(
        working_dir=tmp_path,
        plan_file_path=plan_file,
        env={"TF_WORKSPACE": "review"},
        inherit_environment=False,
        terraform_bin="tofu",
    )
    data = loader.load_plan()

    assert json.loads(data) == {"format_version": "1.0"}
    assert recorded["args"] == ["tofu", "show", "-json", str(plan_file.resolve())]
    assert Path(recorded["cwd"]).resolve() == tmp_path.resolve()
    assert recorded["env"] == {
        "PATH": os.environ.get("PATH", ""),
        "TF_IN_AUTOMATION": "1",
        "TF_WORKSPACE": "review",
    }


def test_plan_file_with_empty_output(monkeypatch, tmp_path):
    plan_file = tmp_path / "saved-plan.tfplan"
    plan_file.write_text("", encoding="utf-8")

    monkeypatch.setattr(
        PlanLoader,
        "_run_command",
        lambda self, args, cwd=None, env=None: SimpleNamespace(stdout="\n"),
    )

    with pytest.raises(PlanLoaderError, match="produced no output"):
        PlanLoader(working_dir=tmp_path, plan_file_path=plan_file).load_plan()


def test_inherited_environment_is_extended(monkeypatch, tmp_path):
    monkeypatch.setenv("WA_REVIEW_MARKER", "present")
    loader = PlanLoader(working_dir=tmp_path, env={"TF_LOG": "ERROR"})

    env = loader._build_environment()

    assert env["WA_REVIEW_MARKER"] == "present"
    assert env["TF_LOG"] == "ERROR"
    assert env["TF_IN_AUTOMATION"] == "1"


def test_missing_artifact_raises(tmp_path):
    loader = PlanLoader(working_dir=tmp_path, plan_json_path=tmp_path / "missing.json")
    with pytest.raises(PlanLoaderError):
        loader.load_plan()

    loader = PlanLoader(working_dir=tmp_path, plan_file_path=tmp_path / "missing.tfplan")
    with pytest.raises(PlanLoaderError):
        loader.load_plan()


def test_no_input_raises_input_error(tmp_path):
    with pytest.raises(InputError):
        PlanLoader(working_dir=tmp_path).load_plan()


def test_missing_executable_is_reported(tmp_path):
    loader = PlanLoader(working_dir=tmp_path)

    with pytest.raises(PlanLoaderError, match="Executable not found"):
        loader._run_command(["wa-review-no-such-binary"], cwd=tmp_path)


def test_failed_command_reports_last_stderr_line(monkeypatch, tmp_path):
    def failing_run(*args, **kwargs):
        raise subprocess.CalledProcessError(1, args[0], stderr="Error: reading plan\nError: unsupported format\n")

    monkeypatch.setattr(subprocess, "run", failing_run)
    loader = PlanLoader(working_dir=tmp_path)

    with pytest.raises(PlanLoaderError, match="exit code 1: Error: unsupported format"):
        loader._run_command(["terraform", "show", "-json", "plan.out"])
