"""Tests for scenario loading, the convenience facade and the CLI."""
from __future__ import annotations

import json
import pathlib

import pytest
import yaml
from click.testing import CliRunner

from aumos_codeowners import CodeOwnersGovernor
from aumos_codeowners.errors import ConfigurationError
from aumos_codeowners.scenario import ScenarioLoader

_SCENARIO = """\
project: demo
config:
  required_approval: Code-Review+1
accounts:
  - {id: 1000, emails: [admin@example.com], name: Admin}
  - {id: 1001, emails: [alice@example.com]}
  - {id: 1004, emails: [dave@example.com]}
project_owners: [1000]
declarations:
  - directory: /
    owners: [admin@example.com]
  - directory: /docs
    owners: [alice@example.com]
repository:
  commits:
    - revision: base
      tree: {/README.md: v1}
    - revision: ps1
      parents: [base]
      tree: {/README.md: v2, /docs/guide.md: v1}
  branches:
    main: base
change:
  id: I0001
  branch: main
  owner: 1004
  patch_sets:
    - {id: 1, uploader: 1004, revision: ps1}
  reviewers: {1000: reviewer, 1001: cc}
  votes:
    - {account: 1001, label: Code-Review, value: 1, patch_set: 1}
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def scenario_file(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "scenario.yaml"
    path.write_text(_SCENARIO, encoding="utf-8")
    return path


def _approved_scenario(tmp_path: pathlib.Path) -> pathlib.Path:
    raw = yaml.safe_load(_SCENARIO)
    raw["change"]["votes"].append({"account": 1000, "label": "Code-Review", "value": 1, "patch_set": 1})
    path = tmp_path / "approved.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# ScenarioLoader
# ---------------------------------------------------------------------------


class TestScenarioLoader:
    def test_load(self, scenario_file: pathlib.Path) -> None:
        scenario = ScenarioLoader().load(scenario_file)
        assert scenario.project == "demo"
        assert scenario.change is not None
        assert scenario.change.current_patch_set.revision == "ps1"
        assert scenario.branch_revision() == "base"
        assert scenario.store.get("/docs", "base") is not None

    def test_evaluate_scenario(self, scenario_file: pathlib.Path) -> None:
        scenario = ScenarioLoader().load(scenario_file)
        assert scenario.change is not None
        result = scenario.approval_check().evaluate(scenario.change)
        statuses = {ps.path: ps.status.value for f in result.statuses for ps in f.path_statuses()}
        assert statuses == {"/README.md": "PENDING", "/docs/guide.md": "APPROVED"}
        assert result.verdict.submittable is False

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            ScenarioLoader().load(tmp_path / "missing.yaml")

    def test_invalid_account_entry(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid scenario"):
            ScenarioLoader().load_dict({"accounts": [{"emails": ["a@example.com"]}]})

    def test_invalid_config(self) -> None:
        with pytest.raises(ConfigurationError):
            ScenarioLoader().load_string("config:\n  required_approval: Verified+1\n")

    def test_scenario_without_change(self) -> None:
        scenario = ScenarioLoader().load_dict({"repository": {"branches": {"main": "base"}}})
        assert scenario.change is None
        assert scenario.branch_revision() == "base"


# ---------------------------------------------------------------------------
# CodeOwnersGovernor
# ---------------------------------------------------------------------------


class TestCodeOwnersGovernor:
    def test_owners_of(self) -> None:
        governor = CodeOwnersGovernor(
            declarations={"/": ["admin@example.com"], "/docs": ["writer@example.com"]}
        )
        assert governor.owners_of("/docs/readme.md") == ["admin@example.com", "writer@example.com"]
        assert governor.owners_of("/src/main.py") == ["admin@example.com"]

    def test_is_owner(self) -> None:
        governor = CodeOwnersGovernor(declarations={"/docs": ["writer@example.com"]})
        assert governor.is_owner("writer@example.com", "/docs/a.md") is True
        assert governor.is_owner("writer@example.com", "/src/a.py") is False
        assert governor.is_owner("stranger@example.com", "/docs/a.md") is False

    def test_all_users(self) -> None:
        governor = CodeOwnersGovernor(declarations={"/": ["*"]})
        assert governor.owners_of("/x") == ["*"]
        assert governor.is_owner("stranger@example.com", "/x") is True

    def test_fallback_config(self) -> None:
        governor = CodeOwnersGovernor(
            declarations={"/docs": ["writer@example.com"]},
            config={"fallback_code_owners": "ALL_USERS"},
        )
        assert governor.owners_of("/src/main.py") == ["*"]

    def test_repr(self) -> None:
        assert repr(CodeOwnersGovernor(declarations={"/": ["a@example.com"]})) == (
            "CodeOwnersGovernor(declarations=1)"
        )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestCli:
    def test_version(self, runner: CliRunner) -> None:
        from aumos_codeowners.cli.main import cli

        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "aumos-codeowners" in result.output

    def test_init_writes_valid_config(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        from aumos_codeowners.cli.main import cli

        output = tmp_path / "code-owners.yaml"
        result = runner.invoke(cli, ["init", "--preset", "strict", "--output", str(output)])
        assert result.exit_code == 0
        assert output.exists()

        validated = runner.invoke(cli, ["config", "validate", str(output)])
        assert validated.exit_code == 0
        assert "Code-Review+2" in validated.output

    def test_config_validate_rejects_bad_config(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        from aumos_codeowners.cli.main import cli

        path = tmp_path / "code-owners.yaml"
        path.write_text("required_approval: Verified+1\n", encoding="utf-8")
        result = runner.invoke(cli, ["config", "validate", str(path)])
        assert result.exit_code == 1

    def test_status_not_submittable(self, runner: CliRunner, scenario_file: pathlib.Path) -> None:
        from aumos_codeowners.cli.main import cli

        result = runner.invoke(cli, ["status", "--scenario", str(scenario_file)])
        assert result.exit_code == 1
        assert "/docs/guide.md" in result.output

    def test_status_json_submittable(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        from aumos_codeowners.cli.main import cli

        result = runner.invoke(cli, ["status", "--scenario", str(_approved_scenario(tmp_path)), "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["submittable"] is True
        assert [f["new_path"] for f in payload["files"]] == ["/README.md", "/docs/guide.md"]

    def test_status_missing_branch_is_conflict(self, runner: CliRunner, tmp_path: pathlib.Path) -> None:
        from aumos_codeowners.cli.main import cli

        raw = yaml.safe_load(_SCENARIO)
        raw["change"]["branch"] = "gone"
        path = tmp_path / "gone.yaml"
        path.write_text(yaml.safe_dump(raw), encoding="utf-8")
        result = runner.invoke(cli, ["status", "--scenario", str(path)])
        assert result.exit_code == 2

    def test_owners(self, runner: CliRunner, scenario_file: pathlib.Path) -> None:
        from aumos_codeowners.cli.main import cli

        result = runner.invoke(cli, ["owners", "/docs/guide.md", "--scenario", str(scenario_file)])
        assert result.exit_code == 0
        assert "alice@example.com" in result.output
        assert "Admin" in result.output

    def test_owned_paths(self, runner: CliRunner, scenario_file: pathlib.Path) -> None:
        from aumos_codeowners.cli.main import cli

        result = runner.invoke(cli, ["owned-paths", "--account", "1001", "--scenario", str(scenario_file)])
        assert result.exit_code == 0
        assert "/docs/guide.md" in result.output
        assert "/README.md" not in result.output
