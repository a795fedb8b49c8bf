"""aaa-help command - Show available commands grouped by category."""

from typing import Dict, List, Optional

from slash_commands.base import CommandGroup, CommandRecord, CommandRegistry, Options
from slash_commands.errors import HandlerError

CATEGORY_ORDER = ["workflow", "state", "sprint", "context", "learning", "development", "help"]

CATEGORY_TITLES = {
    "workflow": "WORKFLOW COMMANDS",
    "state": "STATE MANAGEMENT",
    "sprint": "SPRINT MANAGEMENT",
    "context": "CONTEXT VERIFICATION",
    "learning": "LEARNING SYSTEM",
    "development": "DEVELOPMENT COMMANDS (System Maintenance)",
    "help": "HELP",
}

CATEGORY_DESCRIPTIONS = {
    "workflow": "Start and manage project workflows",
    "state": "Save and restore project state",
    "sprint": "Sprint planning and execution",
    "context": "Verify project context alignment and prevent drift",
    "learning": "Community learning contributions",
    "development": "Set up and reset development environment",
    "help": "Get help and documentation",
}

RULE_WIDTH = 60


def _ordered_categories(categories: List[str]) -> List[str]:
    known = [c for c in CATEGORY_ORDER if c in categories]
    return known + [c for c in categories if c not in CATEGORY_ORDER]


def render_category(category: str, records: List[CommandRecord], description: Optional[str] = None) -> List[str]:
    """Render one category as aligned ``name  description`` lines."""
    lines = [CATEGORY_TITLES.get(category, category.upper())]
    if description:
        lines.append(f"  {description}")
    lines.append("")
    width = max(len(r.name) for r in records)
    for record in records:
        lines.append(f"  {record.name.ljust(width + 2)}{record.description}".rstrip())
        if record.usage and record.usage != record.name:
            lines.append(f"  {' ' * (width + 2)}Usage: {record.usage}")
    lines.append("")
    return lines


class HelpCommands(CommandGroup):
    def __init__(self) -> None:
        self.registry: Optional[CommandRegistry] = None

    def register_commands(self, registry: CommandRegistry) -> None:
        self.registry = registry
        registry.register(
            registry.help_command,
            self.show_help,
            description="Show all available commands",
            category="help",
            usage=f"{registry.help_command} [category]",
            examples=[
                registry.help_command,
                f"{registry.help_command} state",
                f"{registry.help_command} development",
            ],
        )

    def show_help(self, args: List[str], options: Options, command: CommandRecord) -> str:
        if self.registry is None:
            raise HandlerError("Help is not attached to a command registry")
        by_category: Dict[str, List[CommandRecord]] = self.registry.list_by_category()
        requested = args[0].lower() if args else None

        if requested and requested not in by_category:
            available = ", ".join(_ordered_categories(list(by_category)))
            raise HandlerError(f"Unknown category: {requested}. Available categories: {available}")

        lines = ["=" * RULE_WIDTH, "  Commands", "=" * RULE_WIDTH, ""]
        if requested:
            lines.extend(render_category(requested, by_category[requested]))
            return "\n".join(lines)

        for category in _ordered_categories(list(by_category)):
            lines.extend(render_category(category, by_category[category], CATEGORY_DESCRIPTIONS.get(category)))
        lines.append("-" * RULE_WIDTH)
        lines.append("Tips:")
        lines.append(f"  Use {command.name} [category] to see commands for a specific category")
        lines.append("  Commands support options like --yes and --no-backup")
        return "\n".join(lines)
