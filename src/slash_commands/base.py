"""Command registry, alias resolution and dispatch."""

import asyncio
import inspect
import sys
import traceback
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from slash_commands.errors import ConfigurationError, UnknownCommandError

DEFAULT_PREFIX = "/"
DEFAULT_HELP_COMMAND = "/aaa-help"
DEFAULT_CATEGORY = "general"
OPTION_MARKER = "--"

Options = Dict[str, Any]
Handler = Callable[[List[str], Options, "CommandRecord"], Any]


@dataclass(frozen=True)
class CommandRecord:
    """A registered command and its metadata."""

    name: str
    handler: Handler
    description: str = ""
    category: str = DEFAULT_CATEGORY
    usage: str = ""
    examples: Tuple[str, ...] = ()
    requires_backup: bool = False
    prompts: Tuple[str, ...] = ()
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AliasRecord:
    """An alternate token pointing at a command, optionally deprecated."""

    alias: str
    target: str
    deprecation_message: Optional[str] = None


@dataclass
class DispatchResult:
    """Outcome of a single dispatch call."""

    success: bool
    result: Any = None
    error: Optional[str] = None
    trace: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


def parse_options(args: List[str]) -> Tuple[Options, List[str]]:
    """Split argument tokens into ``--key value`` options and positionals.

    A ``--key`` followed by nothing or by another ``--option`` is a boolean
    flag. Positional order is kept; a repeated key keeps its last value.

    Returns:
        ``(options, positional)``
    """
    options: Options = {}
    positional: List[str] = []
    i = 0
    while i < len(args):
        token = args[i]
        if token.startswith(OPTION_MARKER):
            key = token[len(OPTION_MARKER):]
            if i + 1 < len(args) and not args[i + 1].startswith(OPTION_MARKER):
                options[key] = args[i + 1]
                i += 1
            else:
                options[key] = True
        else:
            positional.append(token)
        i += 1
    return options, positional


def _print_warning(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


async def _wait_for(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _run_to_completion(awaitable: Awaitable[Any]) -> Any:
    coro = awaitable if inspect.iscoroutine(awaitable) else _wait_for(awaitable)
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    # asyncio.run cannot nest inside a running loop
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def _failure(exc: Exception) -> "DispatchResult":
    message = str(exc) or exc.__class__.__name__
    return DispatchResult(False, error=message, trace=traceback.format_exc())


class CommandGroup(ABC):
    """Base class for a set of related commands.

    Subclasses register their commands (and any aliases) against the
    registry they are handed, typically binding their own methods as
    handlers.
    """

    @abstractmethod
    def register_commands(self, registry: "CommandRegistry") -> None:
        """Register this group's commands.

        Args:
            registry: registry to register into
        """
        pass


class CommandRegistry:
    """Registry for all available commands."""

    def __init__(
        self,
        prefix: str = DEFAULT_PREFIX,
        help_command: str = DEFAULT_HELP_COMMAND,
        warn: Optional[Callable[[str], None]] = None,
    ):
        self.prefix = prefix
        self.help_command = help_command
        self._warn = warn or _print_warning
        self._commands: Dict[str, CommandRecord] = {}
        self._aliases: Dict[str, AliasRecord] = {}
        self._categories: Dict[str, List[str]] = {}

    def register(
        self,
        name: str,
        handler: Handler,
        description: str = "",
        category: str = DEFAULT_CATEGORY,
        usage: Optional[str] = None,
        examples: Optional[List[str]] = None,
        requires_backup: bool = False,
        prompts: Optional[List[str]] = None,
        options: Optional[Options] = None,
    ) -> CommandRecord:
        """Register a command.

        Raises:
            ConfigurationError: if the name lacks the command prefix or is
                already registered.
        """
        if not name.startswith(self.prefix) or len(name) <= len(self.prefix):
            raise ConfigurationError(f"Command must start with {self.prefix}: {name!r}")
        if name in self._commands:
            raise ConfigurationError(f"Command already registered: {name}")
        if not callable(handler):
            raise ConfigurationError(f"Handler for {name} is not callable")

        record = CommandRecord(
            name=name,
            handler=handler,
            description=description,
            category=category or DEFAULT_CATEGORY,
            usage=usage or name,
            examples=tuple(examples or ()),
            requires_backup=requires_backup,
            prompts=tuple(prompts or ()),
            options=dict(options or {}),
        )
        self._commands[name] = record
        self._categories.setdefault(record.category, []).append(name)
        return record

    def register_alias(self, alias: str, target: str, deprecation_message: Optional[str] = None) -> None:
        """Register an alias; the target is checked when the alias is resolved."""
        self._aliases[alias] = AliasRecord(alias, target, deprecation_message)

    def register_group(self, group: CommandGroup) -> None:
        group.register_commands(self)

    def resolve(self, token: str) -> Optional[CommandRecord]:
        """Get a command by name or alias.

        Resolving a deprecated alias emits its deprecation message once.
        """
        alias = self._aliases.get(token)
        if alias is not None:
            if alias.deprecation_message:
                self._warn(alias.deprecation_message)
            return self._commands.get(alias.target)
        return self._commands.get(token)

    def lookup(self, token: str) -> CommandRecord:
        """Like :meth:`resolve` but raises instead of returning ``None``.

        Raises:
            UnknownCommandError: if the token does not resolve.
        """
        record = self.resolve(token)
        if record is None:
            raise UnknownCommandError(token, self.help_command)
        return record

    def has_command(self, token: str) -> bool:
        return token in self._commands or token in self._aliases

    def parse_options(self, args: List[str]) -> Tuple[Options, List[str]]:
        return parse_options(args)

    def _prepare(self, command_line: str) -> Union[DispatchResult, Tuple[CommandRecord, List[str], Options]]:
        parts = command_line.split()
        if not parts:
            return DispatchResult(False, error=f"No command provided. Use {self.help_command} for available commands.")

        token, args = parts[0], parts[1:]
        try:
            record = self.lookup(token)
        except UnknownCommandError as exc:
            alias = self._aliases.get(token)
            if alias is not None:
                print(f"Alias {token} points at unregistered command {alias.target}", file=sys.stderr)
            return DispatchResult(False, error=str(exc))

        options, positional = parse_options(args)
        return record, positional, options

    def dispatch(self, command_line: str) -> DispatchResult:
        """Run a command line and report the outcome.

        Unknown commands and handler exceptions are returned as failed
        results; nothing raised by a handler escapes this method. An async
        handler is run to completion, on a worker thread when the caller
        already has an event loop running.
        """
        prepared = self._prepare(command_line)
        if isinstance(prepared, DispatchResult):
            return prepared

        record, positional, options = prepared
        result: Any = None
        try:
            result = record.handler(positional, options, record)
            if inspect.isawaitable(result):
                result = _run_to_completion(result)
        except Exception as exc:
            if inspect.iscoroutine(result):
                result.close()
            return _failure(exc)
        return DispatchResult(True, result=result)

    async def dispatch_async(self, command_line: str) -> DispatchResult:
        """Same as :meth:`dispatch`, awaiting async handlers on the current loop."""
        prepared = self._prepare(command_line)
        if isinstance(prepared, DispatchResult):
            return prepared

        record, positional, options = prepared
        try:
            result = record.handler(positional, options, record)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            return _failure(exc)
        return DispatchResult(True, result=result)

    def list_by_category(self) -> Dict[str, List[CommandRecord]]:
        """Get every category with its commands, in registration order."""
        return {
            category: [self._commands[name] for name in names]
            for category, names in self._categories.items()
        }

    def all_commands(self) -> List[CommandRecord]:
        return list(self._commands.values())

    def validate_aliases(self) -> None:
        """Check that every alias points at a registered command.

        Raises:
            ConfigurationError: listing each dangling alias.
        """
        dangling = [
            f"{alias.alias} -> {alias.target}"
            for alias in self._aliases.values()
            if alias.target not in self._commands
        ]
        if dangling:
            raise ConfigurationError("Aliases point at unregistered commands: " + ", ".join(dangling))

    def get_help(self) -> str:
        """Get help text for all commands."""
        lines = ["Available commands:"]
        for category, records in self.list_by_category().items():
            lines.append(f" [{category}]")
            for record in records:
                lines.append(f"  {record.name} - {record.description}")
        lines.append("  exit - Exit the program")
        return "\n".join(lines)
