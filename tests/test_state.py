"""Tests for the project-state commands."""

import json
import os

import pytest

from slash_commands import CommandRegistry
from slash_commands.state import (
    CURRENT_STATE_FILE,
    STATE_DIR,
    STATUS_DEPRECATION,
    WORKFLOW_STATE_FILE,
    StateCommands,
)


@pytest.fixture
def warnings():
    return []


@pytest.fixture
def registry(tmp_path, warnings):
    reg = CommandRegistry(warn=warnings.append)
    reg.register_group(StateCommands(str(tmp_path)))
    reg.validate_aliases()
    return reg


def _state(tmp_path):
    with open(tmp_path / STATE_DIR / CURRENT_STATE_FILE, encoding="utf-8") as fh:
        return json.load(fh)


def test_status_without_state_file(registry):
    result = registry.dispatch("/aaa-status")
    assert result.success
    assert "No project state found" in result.result


def test_status_alias_is_deprecated(registry, warnings):
    result = registry.dispatch("/status")
    assert result.success
    assert "PROJECT STATUS" in result.result
    assert warnings == [STATUS_DEPRECATION]


def test_update_state_sets_current_task(registry, tmp_path):
    result = registry.dispatch("/update-state Working on authentication")
    assert result.success
    state = _state(tmp_path)
    assert state["currentTask"]["description"] == "Working on authentication"
    assert state["projectName"] == os.path.basename(str(tmp_path))

    status = registry.dispatch("/aaa-status").result
    assert "Working on authentication" in status


def test_update_state_requires_details(registry):
    result = registry.dispatch("/update-state")
    assert not result.success
    assert result.error == "Please provide state details"


def test_save_decision_with_quoted_rationale(registry, tmp_path):
    result = registry.dispatch('/save-decision "Use PostgreSQL" "Team already runs it"')
    assert result.success
    decisions = _state(tmp_path)["decisions"]
    assert decisions[0]["decision"] == "Use PostgreSQL"
    assert decisions[0]["rationale"] == "Team already runs it"

    status = registry.dispatch("/aaa-status").result
    assert "Use PostgreSQL" in status
    assert "-> Team already runs it" in status


def test_save_decision_plain_text(registry, tmp_path):
    registry.dispatch("/save-decision Switch to TypeScript")
    decision = _state(tmp_path)["decisions"][0]
    assert decision["decision"] == "Switch to TypeScript"
    assert "rationale" not in decision


def test_save_decision_requires_argument(registry):
    result = registry.dispatch("/save-decision")
    assert not result.success
    assert result.error == "Please provide a decision"


def test_checkpoint_writes_snapshot(registry, tmp_path):
    registry.dispatch("/update-state Sprint one")
    result = registry.dispatch("/checkpoint auth done --full")
    assert result.success

    checkpoint_dir = tmp_path / STATE_DIR / "checkpoints"
    files = list(checkpoint_dir.glob("checkpoint-*.json"))
    assert len(files) == 1
    data = json.loads(files[0].read_text(encoding="utf-8"))
    assert data["message"] == "auth done"
    assert data["full"] is True
    assert data["state"]["currentTask"]["description"] == "Sprint one"


def test_save_alias_creates_checkpoint(registry, tmp_path, warnings):
    assert registry.dispatch("/save").success
    assert list((tmp_path / STATE_DIR / "checkpoints").glob("*.json"))
    assert warnings == []


def test_where_are_we_lists_checkpoints(registry):
    assert "none" in registry.dispatch("/where-are-we").result
    registry.dispatch("/checkpoint")
    assert "checkpoint-" in registry.dispatch("/where-are-we").result


def test_continue_records_sprint(registry, tmp_path):
    result = registry.dispatch("/resume sprint-7")
    assert result.success
    assert "Sprint: sprint-7" in result.result
    assert _state(tmp_path)["currentTask"]["sprint"] == "sprint-7"


def test_show_learnings(registry, tmp_path):
    assert registry.dispatch("/show-learnings").result == "No learnings captured yet"
    learnings = tmp_path / STATE_DIR / "learnings"
    learnings.mkdir(parents=True)
    (learnings / "retro-1.md").write_text("notes", encoding="utf-8")
    assert "retro-1.md" in registry.dispatch("/show-learnings").result


def test_corrupt_state_file_is_reported(registry, tmp_path):
    state_dir = tmp_path / STATE_DIR
    state_dir.mkdir()
    (state_dir / CURRENT_STATE_FILE).write_text("{not json", encoding="utf-8")
    result = registry.dispatch("/aaa-status")
    assert not result.success
    assert "Error reading project state" in result.error


def _write(tmp_path, name, data):
    os.makedirs(tmp_path / STATE_DIR, exist_ok=True)
    with open(tmp_path / STATE_DIR / name, "w", encoding="utf-8") as fh:
        json.dump(data, fh)


def test_status_shows_workflow_section(registry, tmp_path):
    _write(tmp_path, CURRENT_STATE_FILE, {"projectName": "demo"})
    _write(
        tmp_path,
        WORKFLOW_STATE_FILE,
        {"active_workflow": "feature", "started_at": "2025-01-30T09:15:00"},
    )
    status = registry.dispatch("/aaa-status").result
    assert "Workflow Status" in status
    assert "Type: feature" in status
    assert "Phase: Unknown" in status
    assert "Started: 2025-01-30 09:15" in status


def test_status_without_active_workflow_omits_section(registry, tmp_path):
    _write(tmp_path, CURRENT_STATE_FILE, {"projectName": "demo"})
    _write(tmp_path, WORKFLOW_STATE_FILE, {"workflow_phase": "design"})
    assert "Workflow Status" not in registry.dispatch("/aaa-status").result


def test_status_tolerates_hand_edited_state(registry, tmp_path):
    _write(
        tmp_path,
        CURRENT_STATE_FILE,
        {
            "projectName": "demo",
            "currentTask": "Fix the login page",
            "decisions": ["Ship on Friday", {"rationale": "no decision text"}],
            "activeSprint": "sprint-1",
        },
    )
    result = registry.dispatch("/aaa-status")
    assert result.success, result.error
    assert "Fix the login page" in result.result
    assert "* Ship on Friday" in result.result
    assert "(unrecorded decision)" in result.result
    assert "-> no decision text" in result.result


def test_continue_with_plain_text_task(registry, tmp_path):
    _write(tmp_path, CURRENT_STATE_FILE, {"projectName": "demo", "currentTask": "Fix the login page"})
    assert registry.dispatch("/continue sprint-2").success
    task = _state(tmp_path)["currentTask"]
    assert task == {"description": "Fix the login page", "sprint": "sprint-2"}
