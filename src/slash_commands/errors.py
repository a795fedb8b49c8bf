"""Exception types raised by the command registry and its handlers."""

from typing import Optional


class SlashCommandError(Exception):
    """Base class for all command system errors."""


class ConfigurationError(SlashCommandError):
    """Raised when the command table is set up incorrectly.

    Covers malformed command names, duplicate registrations and aliases
    whose target was never registered.
    """


class UnknownCommandError(SlashCommandError):
    """Raised when a token matches neither a command nor an alias."""

    def __init__(self, token: str, help_command: Optional[str] = None):
        self.token = token
        self.help_command = help_command
        message = f"Unknown command: {token}."
        if help_command:
            message += f" Use {help_command} for available commands."
        super().__init__(message)


class HandlerError(SlashCommandError):
    """Raised by a handler for an expected, user-facing failure."""


__all__ = [
    "SlashCommandError",
    "ConfigurationError",
    "UnknownCommandError",
    "HandlerError",
]
