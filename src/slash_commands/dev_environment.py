"""Development commands - backups, restores and resets."""

import glob
import json
import os
import shutil
import sys
from typing import Callable, Dict, List, Optional

from slash_commands.backup import BackupManager
from slash_commands.base import CommandGroup, CommandRecord, CommandRegistry, Options
from slash_commands.errors import HandlerError
from slash_commands.state import CURRENT_STATE_FILE, STATE_DIR, new_state

DOCUMENTS_DIR = "project-documents"
LEARNINGS_DIR = "community-learnings"
LOGS_DIR = "logs"
HOOK_LOGS_DIR = os.path.join("hooks", "logs")
TEMPLATES_DIR = os.path.join("templates", "clean-slate")

# Category name -> path relative to the project root
CATEGORY_PATHS: Dict[str, str] = {
    STATE_DIR: STATE_DIR,
    DOCUMENTS_DIR: DOCUMENTS_DIR,
    LEARNINGS_DIR: LEARNINGS_DIR,
    LOGS_DIR: LOGS_DIR,
}
BACKUP_CATEGORIES = list(CATEGORY_PATHS)
DEFAULT_BACKUP_CATEGORIES = [STATE_DIR, DOCUMENTS_DIR]

CONTRIBUTIONS_DIR = os.path.join(LEARNINGS_DIR, "contributions")
PRESERVED_CONTRIBUTIONS = {"examples", ".gitkeep"}

Confirm = Callable[[str], bool]


def _default_confirm(question: str) -> bool:
    from slash_console import confirm

    return confirm(question)


def _count_files(path: str) -> int:
    if not os.path.isdir(path):
        return 0
    return sum(len(files) for _, _, files in os.walk(path))


def _check_category(category: str) -> None:
    if category not in BACKUP_CATEGORIES:
        raise HandlerError(f"Unknown backup category: {category}. Choose from {', '.join(BACKUP_CATEGORIES)}")


class DevEnvironmentCommands(CommandGroup):
    def __init__(self, project_root: str, backups: BackupManager, confirm: Optional[Confirm] = None):
        self.project_root = project_root
        self.backups = backups
        self.confirm = confirm or _default_confirm
        self._records: Dict[str, CommandRecord] = {}

    def register_commands(self, registry: CommandRegistry) -> None:
        registry.register(
            "/backup-before-reset",
            self.backup_before_reset,
            description="Create manual backup before reset operations",
            category="development",
            usage="/backup-before-reset [category]",
            examples=["/backup-before-reset", "/backup-before-reset project-documents"],
        )
        registry.register(
            "/restore-from-backup",
            self.restore_from_backup,
            description="Restore from most recent backup",
            category="development",
            usage="/restore-from-backup [category]",
            examples=["/restore-from-backup", "/restore-from-backup project-state"],
        )
        registry.register(
            "/list-backups",
            self.list_backups,
            description="Show available backups",
            category="development",
        )
        self._records["/project-state-reset"] = registry.register(
            "/project-state-reset",
            self.project_state_reset,
            description="Reset project-state to a clean state file",
            category="development",
            requires_backup=True,
            prompts=["This will delete current project state. Continue?"],
            usage="/project-state-reset [--no-backup] [--dry-run] [--yes]",
            examples=["/project-state-reset", "/project-state-reset --no-backup", "/project-state-reset --dry-run"],
        )
        self._records["/project-documents-reset"] = registry.register(
            "/project-documents-reset",
            self.project_documents_reset,
            description="Reset project-documents to empty folder structure",
            category="development",
            requires_backup=True,
            prompts=["This will delete all project documents. Continue?"],
            usage="/project-documents-reset [--no-backup] [--dry-run] [--yes]",
            examples=[
                "/project-documents-reset",
                "/project-documents-reset --no-backup",
                "/project-documents-reset --dry-run",
            ],
        )
        registry.register(
            "/community-learnings-reset",
            self.community_learnings_reset,
            description="Clear community learnings contributions",
            category="development",
            requires_backup=True,
            prompts=["This will delete community learnings. Continue?"],
            usage="/community-learnings-reset [--no-backup] [--dry-run] [--yes]",
            examples=["/community-learnings-reset"],
        )
        self._records["/clear-logs"] = registry.register(
            "/clear-logs",
            self.clear_logs,
            description="Clear all log files",
            category="development",
            prompts=["Delete all logs?"],
            usage="/clear-logs [--silent]",
            examples=["/clear-logs", "/clear-logs --silent"],
        )
        registry.register(
            "/setup-dev-environment",
            self.setup_dev_environment,
            description="Set up development environment after cloning",
            category="development",
            usage="/setup-dev-environment [--yes-to-all] [--dry-run]",
            examples=[
                "/setup-dev-environment",
                "/setup-dev-environment --yes-to-all",
                "/setup-dev-environment --dry-run",
            ],
        )

    def _path(self, relative: str) -> str:
        return os.path.join(self.project_root, relative)

    def _confirmed(self, command: CommandRecord, options: Options) -> bool:
        if options.get("yes") or options.get("silent"):
            return True
        return all(self.confirm(question) for question in command.prompts)

    def _backup(self, category: str, source: str, command: CommandRecord, options: Options) -> Optional[str]:
        if options.get("no-backup"):
            print("Skipping backup (--no-backup)", file=sys.stderr)
            return None
        if not command.requires_backup or not os.path.exists(source):
            return None
        path = self.backups.create_backup(category, source, {"reason": f"Before {command.name}"})
        return f"Backup created: {path}"

    def _reset_category(self, category: str, command: CommandRecord, options: Options) -> str:
        target = self._path(category)
        if options.get("dry-run"):
            return "\n".join(
                [
                    f"Dry run - would reset {category}",
                    f"Would delete {_count_files(target)} file(s)",
                ]
            )
        if not self._confirmed(command, options):
            return "Reset cancelled"

        lines = []
        backup = self._backup(category, target, command, options)
        if backup:
            lines.append(backup)

        if os.path.exists(target):
            shutil.rmtree(target)
        template = self._path(os.path.join(TEMPLATES_DIR, category))
        if os.path.isdir(template):
            shutil.copytree(template, target)
        else:
            os.makedirs(target)

        if category == STATE_DIR:
            project_name = os.path.basename(os.path.abspath(self.project_root))
            with open(os.path.join(target, CURRENT_STATE_FILE), "w", encoding="utf-8") as fh:
                json.dump(new_state(project_name), fh, indent=2)
            lines.append("Project state reset")
        else:
            lines.append(f"Reset {category}")
        return "\n".join(lines)

    # Handlers

    def backup_before_reset(self, args: List[str], options: Options, command: CommandRecord) -> str:
        categories = args[:1] or DEFAULT_BACKUP_CATEGORIES
        lines = []
        for category in categories:
            _check_category(category)
            source = self._path(CATEGORY_PATHS[category])
            if not os.path.exists(source):
                lines.append(f"Skipped {category}: nothing to back up")
                continue
            path = self.backups.create_backup(category, source, {"reason": "manual"})
            lines.append(f"Backup created for {category}: {path}")
        return "\n".join(lines)

    def restore_from_backup(self, args: List[str], options: Options, command: CommandRecord) -> str:
        category = args[0] if args else STATE_DIR
        _check_category(category)
        # Restores go back to the path recorded when the backup was taken
        target = self.backups.restore_backup(category)
        return f"Restored {category} to {target}"

    def list_backups(self, args: List[str], options: Options, command: CommandRecord) -> str:
        backups = self.backups.list_backups()
        if not backups:
            return "No backups found"
        lines = ["Available backups:"]
        for entry in backups:
            lines.append(f"  {entry['category']}  {entry['timestamp']}  {entry['size']} bytes")
        return "\n".join(lines)

    def project_state_reset(self, args: List[str], options: Options, command: CommandRecord) -> str:
        return self._reset_category(STATE_DIR, command, options)

    def project_documents_reset(self, args: List[str], options: Options, command: CommandRecord) -> str:
        return self._reset_category(DOCUMENTS_DIR, command, options)

    def community_learnings_reset(self, args: List[str], options: Options, command: CommandRecord) -> str:
        contributions = self._path(CONTRIBUTIONS_DIR)
        if not os.path.isdir(contributions):
            return "No community learnings to reset"

        doomed = sorted(name for name in os.listdir(contributions) if name not in PRESERVED_CONTRIBUTIONS)
        if options.get("dry-run"):
            return "\n".join([f"Dry run - would remove {len(doomed)} contribution(s)"] + [f"   * {n}" for n in doomed])
        if not self._confirmed(command, options):
            return "Reset cancelled"

        lines = []
        backup = self._backup(LEARNINGS_DIR, contributions, command, options)
        if backup:
            lines.append(backup)
        for name in doomed:
            path = os.path.join(contributions, name)
            if os.path.isdir(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
        lines.append(f"Community learnings cleared ({len(doomed)} removed)")
        return "\n".join(lines)

    def clear_logs(self, args: List[str], options: Options, command: CommandRecord) -> str:
        if not self._confirmed(command, options):
            return "Clear logs cancelled"
        removed = 0
        for directory in (LOGS_DIR, HOOK_LOGS_DIR):
            for path in glob.glob(os.path.join(self._path(directory), "**", "*.log"), recursive=True):
                os.remove(path)
                removed += 1
        return f"Removed {removed} log file(s)"

    def setup_dev_environment(self, args: List[str], options: Options, command: CommandRecord) -> str:
        steps = [
            ("Reset project-state", "Reset project-state to clean templates?", "/project-state-reset", {"yes": True}),
            (
                "Reset project-documents",
                "Reset project-documents to empty structure?",
                "/project-documents-reset",
                {"yes": True},
            ),
            ("Clear logs", "Clear all log files?", "/clear-logs", {"silent": True}),
        ]

        if options.get("dry-run"):
            lines = ["Dry run - would perform the following steps:"]
            lines.extend(f"{index}. {name}" for index, (name, _, _, _) in enumerate(steps, 1))
            return "\n".join(lines)

        yes_to_all = bool(options.get("yes-to-all"))
        lines = ["Development Environment Setup"]
        for name, question, step_command, step_options in steps:
            if not (yes_to_all or self.confirm(question)):
                lines.append(f"Skipped: {name}")
                continue
            record = self._records[step_command]
            try:
                lines.append(record.handler([], dict(step_options), record))
            except (HandlerError, OSError) as exc:
                print(f"Failed: {name}: {exc}", file=sys.stderr)
                lines.append(f"Failed: {name}")
                if not (yes_to_all or self.confirm("Continue with remaining steps?")):
                    lines.append("Setup stopped")
                    return "\n".join(lines)
        lines.append("Development environment setup complete!")
        return "\n".join(lines)
