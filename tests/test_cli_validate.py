import json

from typer.testing import CliRunner

from boardtask.cli import app

runner = CliRunner()


def test_cli_validate_success():
    r = runner.invoke(app, ["validate", "examples/basic-project.json"])
    assert r.exit_code == 0
    assert "OK: Q3 Launch" in r.stdout


def test_cli_validate_yaml():
    r = runner.invoke(app, ["validate", "examples/basic-project.yaml"])
    assert r.exit_code == 0
    assert "3 nodes, 2 edges" in r.stdout


def test_cli_validate_version_failure():
    r = runner.invoke(app, ["validate", "examples/invalid-version.json"])
    assert r.exit_code == 2
    assert "E_UNSUPPORTED_VERSION" in r.output


def test_cli_validate_missing_file():
    r = runner.invoke(app, ["validate", "examples/nope.json"])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output


def test_cli_validate_unknown_format():
    r = runner.invoke(app, ["validate", "examples/basic-project.json", "--format", "xml"])
    assert r.exit_code == 2
    assert "E_VALIDATE_UNKNOWN_FORMAT" in r.output


def test_cli_validate_json_success():
    r = runner.invoke(app, ["validate", "examples/basic-project.json", "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["command"] == "validate"
    assert payload["ok"] is True
    assert payload["errors"] == []
    assert payload["summary"]["node_count"] == 5
    assert payload["summary"]["type_counts"]["01JNODETYPE00000000TASK000"] == 3


def test_cli_validate_json_failure_contains_codes():
    r = runner.invoke(app, ["validate", "examples/invalid-empty-title.json", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    assert {e["code"] for e in payload["errors"]} == {"E_EMPTY_TITLE"}
    assert payload["errors"][0]["source"] == "validate"
