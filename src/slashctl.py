#!/usr/bin/env python3
"""slashctl - Main entry point."""

from dotenv import load_dotenv
import sys
from typing import List, Optional

from slash_console import Console
from notifier import DashboardNotifier
from settings import get_backup_root, get_dashboard_retries, get_project_root
from slash_commands import CommandRegistry, ConfigurationError, DispatchResult
from slash_commands.backup import BackupManager
from slash_commands.dev_environment import DevEnvironmentCommands
from slash_commands.help import HelpCommands
from slash_commands.state import StateCommands


EXIT_WORDS = {"exit", "quit", "q"}


def build_registry(project_root: str, backup_root: Optional[str] = None) -> CommandRegistry:
    """Create a registry with every built-in command group registered.

    Raises:
        ConfigurationError: if a command is malformed or an alias dangles.
    """
    registry = CommandRegistry()
    registry.register_group(HelpCommands())
    registry.register_group(StateCommands(project_root))
    backups = BackupManager(backup_root or get_backup_root(project_root))
    registry.register_group(DevEnvironmentCommands(project_root, backups))
    registry.validate_aliases()
    return registry


def _report(result: DispatchResult) -> None:
    if result.success:
        if result.result is not None:
            print(result.result)
    else:
        print(f"Error: {result.error}", file=sys.stderr)


def _run_line(registry: CommandRegistry, notifier: Optional[DashboardNotifier], line: str) -> DispatchResult:
    result = registry.dispatch(line)
    _report(result)
    if notifier is not None:
        notifier.notify(line, result)
    return result


def _handle_command(registry: CommandRegistry, notifier: Optional[DashboardNotifier], line: str) -> bool:
    """Handle a command line input.

    Returns:
        False to exit the loop, True to continue.
    """
    line = line.strip()
    if not line:
        return True

    if line.lower() in EXIT_WORDS:
        return False

    _run_line(registry, notifier, line)
    if not registry.has_command(line.split()[0]):
        print(registry.get_help())
    return True


def _repl(registry: CommandRegistry, notifier: Optional[DashboardNotifier]) -> int:
    console = Console()
    console.start()

    print("Ready!")
    print(registry.get_help())

    while True:
        try:
            line = console.read_command("> ")
        except (EOFError, KeyboardInterrupt):
            print("\nExiting...")
            break
        if not _handle_command(registry, notifier, line):
            break
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point.

    With arguments, dispatches them as a single command line and returns
    its exit code. Without arguments, starts the interactive loop.
    """
    load_dotenv()
    if argv is None:
        argv = sys.argv[1:]

    try:
        registry = build_registry(get_project_root())
        notifier = DashboardNotifier.from_env(max_attempts=get_dashboard_retries())
    except (ValueError, ConfigurationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    if argv:
        return _run_line(registry, notifier, " ".join(argv)).exit_code
    return _repl(registry, notifier)


if __name__ == "__main__":
    sys.exit(main())
