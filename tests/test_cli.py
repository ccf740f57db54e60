from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from buildmatrix import cli as cli_module
from buildmatrix.runner import load_workflow

WORKFLOW = """\
from buildmatrix.dsl import definition, target

def workflow():
    return definition(
        target("good", "ubuntu-latest"),
        target("bad", "ubuntu-latest"),
        target("off", "windows-latest", file_ext=".exe", enabled=False),
    )
"""


@pytest.fixture
def workflow_file(tmp_path):
    path = tmp_path / "release_workflow.py"
    path.write_text(WORKFLOW, encoding="utf-8")
    return path


@pytest.fixture
def patched_env(monkeypatch, fake_env, workflow_file):
    env = fake_env(load_workflow(workflow_file))
    monkeypatch.setattr(cli_module, "LocalEnvironment", lambda *a, **kw: env)
    return env


def test_run_exits_non_zero_when_a_job_fails(workflow_file, patched_env, tmp_path):
    patched_env.fail_build.add("bad")
    report = tmp_path / "report.json"

    result = CliRunner().invoke(
        cli_module.cli,
        ["run", "--workflow", str(workflow_file), "--report", str(report)],
    )

    assert result.exit_code == 1, result.output
    assert "good: SUCCEEDED" in result.output
    assert "bad: FAILED" in result.output
    assert "off" not in result.output
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["exit_code"] == 1
    assert [j["target"] for j in data["jobs"]] == ["good", "bad"]
    assert patched_env.store.names() == ["good"]


def test_run_exits_zero_with_only_compression_warnings(workflow_file, patched_env):
    patched_env.fail_compress = True

    result = CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(workflow_file)])

    assert result.exit_code == 0, result.output
    assert "WARNING: step 'compress binaries' failed" in result.output
    assert "(1 warning)" in result.output


def test_run_single_target(workflow_file, patched_env):
    result = CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(workflow_file), "--target", "good"])

    assert result.exit_code == 0, result.output
    assert patched_env.store.names() == ["good"]


def test_run_header_counts_selected_jobs(workflow_file, patched_env):
    result = CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(workflow_file), "--target", "good"])

    assert result.exit_code == 0, result.output
    assert "Workflow: release_workflow.py" in result.output
    assert "Jobs: 1" in result.output
    assert result.output.count("RUN STARTED") == 1


@pytest.mark.parametrize("workers", ["0", "-2"])
def test_run_rejects_non_positive_workers(workflow_file, patched_env, workers):
    result = CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(workflow_file), "--workers", workers])

    assert result.exit_code == 2
    assert "--workers" in result.output
    assert patched_env.calls == []


def test_debug_flag_prints_debug_lines(workflow_file, patched_env):
    result = CliRunner().invoke(cli_module.cli, ["--debug", "run", "--workflow", str(workflow_file), "--target", "good"])

    assert result.exit_code == 0, result.output
    assert "[DEBUG] [good] runs-on 'ubuntu-latest'" in result.output
    assert "[DEBUG] [good] stored" in result.output


def test_no_debug_lines_without_flag(workflow_file, patched_env):
    result = CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(workflow_file), "--target", "good"])

    assert result.exit_code == 0, result.output
    assert "[DEBUG]" not in result.output


def test_run_invalid_matrix(tmp_path, patched_env):
    wf = tmp_path / "dup_workflow.py"
    wf.write_text(
        "from buildmatrix.dsl import definition, target\n"
        "MATRIX = definition(target('a', 'ubuntu-latest'), target('a', 'macos-latest'))\n",
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(wf)])

    assert result.exit_code == 1
    assert "Invalid build matrix" in result.output
    assert patched_env.calls == []


def test_run_missing_workflow_file(tmp_path):
    result = CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(tmp_path / "nope")])
    assert result.exit_code == 1
    assert "Workflow file not found" in result.output


def test_plan_lists_enabled_jobs(workflow_file):
    result = CliRunner().invoke(cli_module.cli, ["plan", "--workflow", str(workflow_file)])

    assert result.exit_code == 0, result.output
    assert "2 job(s)" in result.output
    assert "binary:  target/good/release/cs" in result.output
    assert "compress binaries (continue-on-error)" in result.output
    assert "off" not in result.output


def test_artifacts_lists_store(tmp_path, workflow_file, patched_env):
    CliRunner().invoke(cli_module.cli, ["run", "--workflow", str(workflow_file)])

    result = CliRunner().invoke(cli_module.cli, ["artifacts", "--artifacts-dir", str(patched_env.store.root)])

    assert result.exit_code == 0
    assert "  bad" in result.output
    assert "  good" in result.output


def test_discovers_default_workflow(tmp_path, monkeypatch):
    (tmp_path / "buildmatrix_workflow.py").write_text(WORKFLOW, encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.cli, ["plan"])

    assert result.exit_code == 0, result.output
    assert "from buildmatrix_workflow.py" in result.output
