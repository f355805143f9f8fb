import json

import pytest
from click.testing import CliRunner

from abcd_wizard.cli import cli
from abcd_wizard.managers import StorageManager


@pytest.fixture
def run(api, wizard_dir):
    """Invoke the CLI against the fake API and the temp .abcd/ directory."""
    api.serve_course()
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(
            cli,
            ["--wizard-dir", str(wizard_dir), *args],
            obj={"client_factory": api.client},
        )

    return invoke


@pytest.fixture
def pulled(run):
    result = run("pull", "c1")
    assert result.exit_code == 0, result.output
    return run


def _saved(wizard_dir):
    return StorageManager(wizard_dir).load_snapshot("c1")


def test_cli_registers_commands():
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for name in ("pull", "status", "validate", "export", "gap", "subtask", "objective", "config"):
        assert name in result.output


# =============================================================================
# Session commands
# =============================================================================


def test_pull(run, wizard_dir):
    result = run("pull", "c1")

    assert result.exit_code == 0
    assert "✓ Pulled 'Claims Onboarding'" in result.output
    assert "Objectives:   1" in result.output
    assert (wizard_dir / "courses" / "c1.json").exists()


def test_pull_unknown_course(run):
    result = run("pull", "nope")
    assert result.exit_code == 1
    assert "404" in result.output


def test_local_commands_need_pull(run):
    result = run("status", "c1")
    assert result.exit_code == 1
    assert "abcd-wizard pull c1" in result.output


def test_status(pulled):
    result = pulled("status", "c1", "--step", "4")

    assert result.exit_code == 0
    assert "Objectives Wizard: Claims Onboarding" in result.output
    assert "● 1. Context & Gap Check (done)" in result.output
    assert "→ ◑ 4. Objective Builder (progress)" in result.output


def test_status_json(pulled):
    result = pulled("status", "c1", "--json")

    data = json.loads(result.output)
    statuses = {row["key"]: row["status"] for row in data["steps"]}
    assert statuses == {
        "context": "done",
        "priority": "done",
        "tasks": "progress",
        "builder": "progress",
        "validation": "progress",
        "export": "none",
    }
    assert data["counts"]["progress"] == 3


def test_status_unknown_step(pulled):
    result = pulled("status", "c1", "--step", "9")
    assert result.exit_code == 1
    assert "Unknown wizard step '9'" in result.output


def test_validate(pulled):
    result = pulled("validate", "c1")

    assert result.exit_code == 0
    assert "Tasks covered: 1/2" in result.output
    assert "✗ Search for a member (0)" in result.output


def test_validate_json(pulled):
    data = json.loads(pulled("validate", "c1", "--json").output)

    assert data["covered_tasks"] == 1
    assert data["uncovered_tasks"] == [{"id": "t2", "text": "Search for a member"}]
    assert data["bloom_distribution"]["Apply"] == 1


def test_export_default_file(pulled, wizard_dir):
    result = pulled("export", "c1")

    assert result.exit_code == 0
    assert "✓ Exported 1 objective(s)" in result.output
    assert "⚠ 1 task(s) have no objectives" in result.output
    markdown = (wizard_dir / "exports" / "c1.md").read_text(encoding="utf-8")
    assert markdown.startswith("# Learning Objectives: Claims Onboarding")


def test_export_json_to_stdout(pulled):
    result = pulled("export", "c1", "--format", "json", "--stdout")

    data = json.loads(result.output)
    assert data["objective_count"] == 1
    assert data["uncovered_tasks"] == ["Search for a member"]


# =============================================================================
# Editing commands
# =============================================================================


def test_gap_show(pulled):
    result = pulled("gap", "c1")
    assert "Knowledge gap: no" in result.output
    assert "Skill gap:     yes" in result.output


def test_gap_set(pulled, api, wizard_dir):
    result = pulled("gap", "c1", "--knowledge")

    assert result.exit_code == 0, result.output
    assert "✓ Gap saved (knowledge=True, skill=True)" in result.output
    assert api.writes() == [("PATCH", "/api/courses/c1/gap", {"gapKnowledge": True, "gapSkill": True})]
    assert _saved(wizard_dir).gap.knowledge is True


def test_subtask_list(pulled):
    result = pulled("subtask", "list", "c1", "t1")
    assert "Enter a new claim [must]" in result.output
    assert "1. Open the claim form (New) [s1]" in result.output


def test_subtask_add(pulled, api, wizard_dir):
    result = pulled("subtask", "add", "c1", "t2", "Type the member id")

    assert result.exit_code == 0, result.output
    assert "✓ Added sub-task 'Type the member id'" in result.output
    method, path, body = api.writes()[0]
    assert (method, path) == ("POST", "/api/courses/c1/triage-items/t2/sub-tasks")
    assert body["text"] == "Type the member id"
    assert [s.id for s in _saved(wizard_dir).sub_tasks if s.parent_item_id == "t2"] == ["srv-1"]


def test_subtask_add_rejected(pulled, api):
    api.fail_creates = True
    result = pulled("subtask", "add", "c1", "t2", "Type the member id")

    assert result.exit_code == 1
    assert "Sub-task could not be saved." in result.output


def test_subtask_add_to_missing_task(pulled, api):
    result = pulled("subtask", "add", "c1", "nope", "x")
    assert result.exit_code == 1
    assert "Triage item 'nope' not found." in result.output
    assert api.writes() == []


def test_objective_list(pulled):
    result = pulled("objective", "list", "c1")
    assert "[o1] Given a paper claim, Claims processor (~40) will enter a new claim with no errors." in result.output


def test_objective_show(pulled):
    result = pulled("objective", "show", "c1", "o1")
    assert "Priority: Must Have" in result.output
    assert "Assessed: yes" in result.output


def test_objective_add_linked(pulled, api, wizard_dir):
    result = pulled("objective", "add", "c1", "--task", "t2")

    assert result.exit_code == 0, result.output
    assert api.writes() == [
        ("POST", "/api/courses/c1/objectives", {"title": "", "objectivePriority": "SHOULD"}),
        ("PUT", "/api/objectives/srv-1", {"linkedTriageItemId": "t2"}),
    ]
    saved = {o.id: o for o in _saved(wizard_dir).objectives}
    assert saved["srv-1"].linked_task_id == "t2"


def test_objective_set(pulled, api):
    result = pulled("objective", "set", "c1", "o1", "criteria=within 5 minutes", "requires-assessment=false")

    assert result.exit_code == 0, result.output
    assert api.writes() == [
        ("PUT", "/api/objectives/o1", {"criteria": "within 5 minutes", "requiresAssessment": False}),
    ]


def test_objective_rm(pulled, api, wizard_dir):
    result = pulled("objective", "rm", "c1", "o1")

    assert result.exit_code == 0
    assert api.writes() == [("DELETE", "/api/objectives/o1", None)]
    assert _saved(wizard_dir).objectives == []


def test_objective_fill(pulled):
    result = pulled("objective", "fill", "c1")
    assert "✓ Created 1 objective(s)" in result.output


# =============================================================================
# Config
# =============================================================================


def test_config_set_and_get(run, wizard_dir):
    result = run("config", "set", "request-timeout", "30")
    assert result.exit_code == 0, result.output
    assert "✓ request_timeout = 30.0" in result.output

    assert json.loads((wizard_dir / "config.json").read_text())["request_timeout"] == 30.0
    assert run("config", "get", "request_timeout").output.strip() == "30.0"


def test_config_show(run):
    data = json.loads(run("config", "show").output)
    assert data["objective_debounce_seconds"] == 1.5


def test_config_invalid_value(run):
    result = run("config", "set", "request_timeout", "soon")
    assert result.exit_code == 1
    assert "Invalid value for 'request_timeout'" in result.output


def test_config_unknown_key(run):
    result = run("config", "get", "bogus")
    assert result.exit_code == 1
    assert "Unknown config key 'bogus'" in result.output


def test_config_read_only_key(run):
    result = run("config", "set", "schema_version", "9")
    assert result.exit_code == 1
    assert "cannot be changed" in result.output
