import json

import pytest
import yaml
from click.testing import CliRunner

from config.manager import EnvironmentManager
from flowkit.cli import cli


@pytest.fixture(autouse=True)
def fresh_environment(monkeypatch, tmp_path):
    """Give each invocation its own settings, isolated from the caller's .env"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("FLOW_FILE_PATH", "LLM_PROVIDER", "ALLOW_EXTERNAL_COMMANDS"):
        monkeypatch.delenv(name, raising=False)
    EnvironmentManager._instance = None
    yield
    EnvironmentManager._instance = None


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def flow_file(write_flow_file):
    return write_flow_file(
        {
            "flows": [
                {
                    "name": "greet",
                    "description": "Say hello",
                    "steps": [{"id": "s1", "prompt": "Hello {{language}}"}],
                },
                {
                    "name": "strict",
                    "steps": [
                        {
                            "prompt": "x",
                            "validation": {"type": "length", "rule": 10000, "halt_on_failure": True},
                        }
                    ],
                },
            ]
        }
    )


def test_run_prints_result(runner, flow_file):
    result = runner.invoke(cli, ["run", "greet", "--model", "dummy", "--var", "language=go"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["success"] is True
    assert data["final_output"] == "ECHO: Hello go"


def test_run_failed_validation_exits_1(runner, flow_file):
    result = runner.invoke(cli, ["run", "strict", "--model", "dummy"])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["success"] is False


def test_run_unknown_flow_exits_2(runner, flow_file):
    result = runner.invoke(cli, ["run", "missing", "--model", "dummy"])

    assert result.exit_code == 2
    assert "Flow 'missing' not found" in result.output


def test_run_rejects_malformed_variable(runner, flow_file):
    result = runner.invoke(cli, ["run", "greet", "--var", "no-equals-sign"])

    assert result.exit_code != 0
    assert "KEY=VALUE" in result.output


def test_list_flows(runner, flow_file):
    result = runner.invoke(cli, ["list-flows"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["greet (1 steps) - Say hello", "strict (1 steps)"]


def test_list_flows_empty(runner, tmp_path):
    result = runner.invoke(cli, ["list-flows", "--flow-file", str(tmp_path / "none.yaml")])

    assert result.exit_code == 0
    assert "No flows found." in result.output


def test_set_overrides_setting(runner, write_flow_file):
    write_flow_file({"flows": [{"name": "alt", "steps": []}]}, name="alt.yaml")

    result = runner.invoke(cli, ["--set", "flow_file_path=alt.yaml", "list-flows"])

    assert result.exit_code == 0
    assert "alt (0 steps)" in result.output


def test_set_rejects_unknown_setting(runner):
    result = runner.invoke(cli, ["--set", "no_such_setting=1", "list-flows"])

    assert result.exit_code != 0
    assert "Unknown setting" in result.output


def test_merge_examples(runner, tmp_path):
    examples = tmp_path / "flow-examples"
    examples.mkdir()
    (examples / "review.yaml").write_text(
        yaml.safe_dump({"flows": [{"name": "review", "steps": [{"prompt": "Review"}]}]})
    )

    result = runner.invoke(cli, ["merge-examples"])

    assert result.exit_code == 0
    assert "Merged 1 flow(s) into flow.yaml" in result.output
    merged = yaml.safe_load((tmp_path / "flow.yaml").read_text())
    assert [f["name"] for f in merged["flows"]] == ["review"]


def test_merge_examples_without_directory_fails(runner):
    result = runner.invoke(cli, ["merge-examples", "--examples-dir", "nowhere"])

    assert result.exit_code == 1
    assert "Error" in result.output
