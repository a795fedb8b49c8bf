"""Slash-command system for slashctl.

Commands are plain handler functions registered on a CommandRegistry.
Related commands are grouped in CommandGroup subclasses that implement:
- register_commands(registry): register commands and aliases
Each handler is called as handler(positional, options, command).
"""

from .base import CommandGroup, CommandRecord, CommandRegistry, DispatchResult, parse_options
from .errors import ConfigurationError, HandlerError, SlashCommandError, UnknownCommandError

__all__ = [
    "CommandGroup",
    "CommandRecord",
    "CommandRegistry",
    "DispatchResult",
    "parse_options",
    "ConfigurationError",
    "HandlerError",
    "SlashCommandError",
    "UnknownCommandError",
]
