"""Project-state commands - status, checkpoints, decisions."""

import json
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from slash_commands.base import CommandGroup, CommandRecord, CommandRegistry, Options
from slash_commands.errors import HandlerError

STATE_DIR = "project-state"
CURRENT_STATE_FILE = "current-state.json"
WORKFLOW_STATE_FILE = "workflow-state.json"
CHECKPOINT_DIR = "checkpoints"
LEARNINGS_DIR = "learnings"
RULE_WIDTH = 60
RECENT_DECISIONS = 3
RECENT_CHECKPOINTS = 5

STATUS_DEPRECATION = "/status is deprecated to avoid conflicts with the host tool. Please use /aaa-status instead."

_QUOTED_DECISION = re.compile(r'"([^"]+)"\s*"?([^"]*)"?')


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _format_time(value: Optional[str]) -> str:
    if not value:
        return "unknown"
    try:
        return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


def _task_dict(task: Any) -> Dict[str, Any]:
    if isinstance(task, dict):
        return task
    return {"description": str(task)} if task else {}


def new_state(project_name: str) -> Dict[str, Any]:
    now = _now_iso()
    return {
        "projectName": project_name,
        "createdAt": now,
        "lastUpdated": now,
        "currentTask": None,
        "decisions": [],
        "activeSprint": None,
    }


class StateCommands(CommandGroup):
    """Commands reading and writing ``project-state/current-state.json``."""

    def __init__(self, project_root: str):
        self.project_root = project_root
        self.state_dir = os.path.join(project_root, STATE_DIR)
        self.state_path = os.path.join(self.state_dir, CURRENT_STATE_FILE)

    def register_commands(self, registry: CommandRegistry) -> None:
        registry.register(
            "/aaa-status",
            self.show_status,
            description="Show current project and workflow status",
            category="state",
            examples=["/aaa-status"],
        )
        registry.register_alias("/status", "/aaa-status", STATUS_DEPRECATION)

        registry.register(
            "/checkpoint",
            self.create_checkpoint,
            description="Create manual save point",
            category="state",
            usage="/checkpoint [message] [--full]",
            examples=["/checkpoint", "/checkpoint Completed authentication", "/checkpoint --full"],
        )
        registry.register_alias("/save", "/checkpoint")

        registry.register(
            "/continue",
            self.continue_work,
            description="Resume previous work session",
            category="state",
            usage="/continue [sprint-name]",
            examples=["/continue", "/continue sprint-2025-01-30-authentication"],
        )
        registry.register_alias("/resume", "/continue")

        registry.register(
            "/where-are-we",
            self.where_are_we,
            description="Display comprehensive context summary",
            category="state",
        )
        registry.register(
            "/update-state",
            self.update_state,
            description="Manually update project state",
            category="state",
            usage='/update-state "details"',
        )
        registry.register(
            "/save-decision",
            self.save_decision,
            description="Save important decision with rationale",
            category="state",
            usage='/save-decision "decision" ["rationale"]',
            examples=['/save-decision "Use PostgreSQL" "Team already runs it"'],
        )
        registry.register(
            "/show-learnings",
            self.show_learnings,
            description="Display captured learnings from this project",
            category="state",
        )

    # State file helpers

    def load_state(self) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.state_path):
            return None
        try:
            with open(self.state_path, encoding="utf-8") as fh:
                return json.load(fh)
        except json.JSONDecodeError as exc:
            raise HandlerError(f"Error reading project state: {exc}")

    def load_workflow_state(self) -> Optional[Dict[str, Any]]:
        path = os.path.join(self.state_dir, WORKFLOW_STATE_FILE)
        if not os.path.exists(path):
            return None
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise HandlerError(f"Error reading workflow state: {exc}")
        return data if isinstance(data, dict) else None

    def save_state(self, state: Dict[str, Any]) -> None:
        os.makedirs(self.state_dir, exist_ok=True)
        state["lastUpdated"] = _now_iso()
        with open(self.state_path, "w", encoding="utf-8") as fh:
            json.dump(state, fh, indent=2)

    def _load_or_create(self) -> Dict[str, Any]:
        state = self.load_state()
        if state is None:
            state = new_state(os.path.basename(os.path.abspath(self.project_root)))
        return state

    def _checkpoints(self) -> List[str]:
        path = os.path.join(self.state_dir, CHECKPOINT_DIR)
        if not os.path.isdir(path):
            return []
        return sorted(name for name in os.listdir(path) if name.endswith(".json"))

    # Handlers

    def show_status(self, args: List[str], options: Options, command: CommandRecord) -> str:
        lines = ["-" * RULE_WIDTH, "  PROJECT STATUS", "-" * RULE_WIDTH, ""]
        state = self.load_state()
        if state is None:
            lines.append("No project state found. Start with a workflow command or /update-state.")
            return "\n".join(lines)

        lines.append("Project Information")
        lines.append(f"   Name: {state.get('projectName') or 'Unnamed Project'}")
        lines.append(f"   Started: {_format_time(state.get('createdAt'))}")
        lines.append(f"   Last Updated: {_format_time(state.get('lastUpdated'))}")

        workflow = self.load_workflow_state()
        if workflow and workflow.get("active_workflow"):
            lines.append("")
            lines.append("Workflow Status")
            lines.append(f"   Type: {workflow['active_workflow']}")
            lines.append(f"   Phase: {workflow.get('workflow_phase') or 'Unknown'}")
            lines.append(f"   Started: {_format_time(workflow.get('started_at'))}")

        task = state.get("currentTask")
        if task:
            lines.append("")
            lines.append("Current Task")
            if isinstance(task, dict):
                lines.append(f"   {task.get('description') or '(no description)'}")
                if task.get("sprint"):
                    lines.append(f"   Sprint: {task['sprint']}")
            else:
                lines.append(f"   {task}")

        decisions = state.get("decisions") or []
        if isinstance(decisions, list) and decisions:
            lines.append("")
            lines.append("Recent Decisions")
            for decision in decisions[-RECENT_DECISIONS:]:
                if not isinstance(decision, dict):
                    lines.append(f"   * {decision}")
                    continue
                lines.append(f"   * {decision.get('decision') or '(unrecorded decision)'}")
                if decision.get("rationale"):
                    lines.append(f"     -> {decision['rationale']}")

        sprint = state.get("activeSprint")
        if isinstance(sprint, dict):
            lines.append("")
            lines.append("Active Sprint")
            lines.append(f"   {sprint.get('name', '')}")
            lines.append(f"   Progress: {sprint.get('completedPoints', 0)}/{sprint.get('totalPoints', 0)} points")

        lines.append("")
        lines.append("Next Steps")
        lines.append("   Use /continue to resume work")
        lines.append("   Use /checkpoint to save progress")
        return "\n".join(lines)

    def create_checkpoint(self, args: List[str], options: Options, command: CommandRecord) -> str:
        state = self._load_or_create()
        now = datetime.now(timezone.utc)
        checkpoint = {
            "createdAt": now.isoformat(),
            "message": " ".join(args),
            "full": bool(options.get("full")),
            "state": state,
        }
        path = os.path.join(self.state_dir, CHECKPOINT_DIR)
        os.makedirs(path, exist_ok=True)
        filename = os.path.join(path, f"checkpoint-{now.strftime('%Y%m%dT%H%M%S%fZ')}.json")
        with open(filename, "w", encoding="utf-8") as fh:
            json.dump(checkpoint, fh, indent=2)
        return f"Checkpoint created: {filename}"

    def continue_work(self, args: List[str], options: Options, command: CommandRecord) -> str:
        sprint_name = " ".join(args)
        lines = ["Resuming work..."]
        if sprint_name:
            state = self._load_or_create()
            task = _task_dict(state.get("currentTask"))
            task["sprint"] = sprint_name
            state["currentTask"] = task
            self.save_state(state)
            lines.append(f"   Sprint: {sprint_name}")
        lines.append(self.show_status([], {}, command))
        return "\n".join(lines)

    def where_are_we(self, args: List[str], options: Options, command: CommandRecord) -> str:
        lines = [self.show_status([], {}, command), "", "Recent Checkpoints"]
        checkpoints = self._checkpoints()[-RECENT_CHECKPOINTS:]
        if not checkpoints:
            lines.append("   none")
        for name in checkpoints:
            lines.append(f"   * {name}")
        return "\n".join(lines)

    def update_state(self, args: List[str], options: Options, command: CommandRecord) -> str:
        details = " ".join(args).strip().strip('"')
        if not details:
            raise HandlerError("Please provide state details")
        state = self._load_or_create()
        task = _task_dict(state.get("currentTask"))
        task["description"] = details
        task["updatedAt"] = _now_iso()
        state["currentTask"] = task
        self.save_state(state)
        return f"State updated: {details}"

    def save_decision(self, args: List[str], options: Options, command: CommandRecord) -> str:
        if not args:
            raise HandlerError("Please provide a decision")
        text = " ".join(args)
        match = _QUOTED_DECISION.match(text)
        if match:
            decision, rationale = match.group(1), match.group(2)
        else:
            decision, rationale = text, ""

        state = self._load_or_create()
        record = {"decision": decision, "timestamp": _now_iso()}
        if rationale:
            record["rationale"] = rationale
        state.setdefault("decisions", []).append(record)
        self.save_state(state)

        lines = [f"Decision saved: {decision}"]
        if rationale:
            lines.append(f"   Rationale: {rationale}")
        return "\n".join(lines)

    def show_learnings(self, args: List[str], options: Options, command: CommandRecord) -> str:
        path = os.path.join(self.state_dir, LEARNINGS_DIR)
        entries = sorted(os.listdir(path)) if os.path.isdir(path) else []
        if not entries:
            return "No learnings captured yet"
        return "\n".join(["Captured Learnings"] + [f"   * {name}" for name in entries])
