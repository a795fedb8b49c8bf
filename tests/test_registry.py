"""Tests for slash_commands.base.CommandRegistry."""

import asyncio
import warnings as warnings_module

import pytest

from slash_commands import (
    CommandRegistry,
    ConfigurationError,
    UnknownCommandError,
    parse_options,
)


def _echo(args, options, command):
    return {"args": args, "options": options, "command": command.name}


@pytest.fixture
def warnings():
    return []


@pytest.fixture
def registry(warnings):
    reg = CommandRegistry(warn=warnings.append)
    reg.register("/aaa-status", _echo, description="Show status", category="state")
    reg.register("/checkpoint", _echo, category="state", usage="/checkpoint [message]")
    reg.register("/list-backups", _echo, category="development")
    reg.register_alias("/status", "/aaa-status", "Use /aaa-status instead.")
    reg.register_alias("/save", "/checkpoint")
    return reg


def test_resolve_returns_registered_record(registry):
    for record in registry.all_commands():
        assert registry.resolve(record.name) is record


def test_register_fills_defaults():
    reg = CommandRegistry()
    record = reg.register("/ping", _echo)
    assert record.category == "general"
    assert record.usage == "/ping"
    assert record.examples == ()
    assert record.requires_backup is False
    assert reg.list_by_category() == {"general": [record]}


def test_alias_resolves_to_target_and_warns_once_per_resolution(registry, warnings):
    assert registry.resolve("/status") is registry.resolve("/aaa-status")
    assert warnings == ["Use /aaa-status instead."]

    registry.resolve("/status")
    assert len(warnings) == 2


def test_alias_without_deprecation_is_silent(registry, warnings):
    assert registry.resolve("/save").name == "/checkpoint"
    assert warnings == []


def test_default_warning_goes_to_stderr(capsys):
    reg = CommandRegistry()
    reg.register("/aaa-status", _echo)
    reg.register_alias("/status", "/aaa-status", "deprecated")
    reg.resolve("/status")
    assert "Warning: deprecated" in capsys.readouterr().err


def test_dangling_alias_resolves_to_nothing(registry):
    registry.register_alias("/old", "/never-registered")
    assert registry.resolve("/old") is None
    with pytest.raises(UnknownCommandError):
        registry.lookup("/old")


def test_validate_aliases_reports_dangling_targets(registry):
    registry.validate_aliases()
    registry.register_alias("/old", "/never-registered")
    with pytest.raises(ConfigurationError, match="/old -> /never-registered"):
        registry.validate_aliases()


def test_register_without_prefix_leaves_table_unchanged(registry):
    before = registry.all_commands()
    categories = registry.list_by_category()
    with pytest.raises(ConfigurationError):
        registry.register("status", _echo, category="state")
    assert registry.all_commands() == before
    assert registry.list_by_category() == categories
    assert registry.resolve("status") is None


def test_duplicate_registration_is_rejected(registry):
    original = registry.resolve("/checkpoint")
    with pytest.raises(ConfigurationError, match="already registered"):
        registry.register("/checkpoint", lambda *a: None, category="other")
    assert registry.resolve("/checkpoint") is original
    assert "other" not in registry.list_by_category()


def test_custom_prefix():
    reg = CommandRegistry(prefix="!", help_command="!help")
    reg.register("!ping", _echo)
    with pytest.raises(ConfigurationError):
        reg.register("/ping", _echo)


def test_has_command_covers_aliases_without_warning(registry, warnings):
    assert registry.has_command("/aaa-status")
    assert registry.has_command("/status")
    assert not registry.has_command("/nope")
    assert warnings == []


def test_list_by_category_keeps_registration_order(registry):
    by_category = registry.list_by_category()
    assert list(by_category) == ["state", "development"]
    assert [r.name for r in by_category["state"]] == ["/aaa-status", "/checkpoint"]


def test_dispatch_passes_parsed_arguments(registry):
    result = registry.dispatch("  /checkpoint first --full --label v1 second ")
    assert result.success
    assert result.exit_code == 0
    assert result.result == {
        "args": ["first", "second"],
        "options": {"full": True, "label": "v1"},
        "command": "/checkpoint",
    }


def test_dispatch_through_alias_passes_target_record(registry, warnings):
    result = registry.dispatch("/status")
    assert result.success
    assert result.result["command"] == "/aaa-status"
    assert warnings == ["Use /aaa-status instead."]


def test_dispatch_unknown_command_references_help():
    reg = CommandRegistry()
    result = reg.dispatch("/unknown-xyz")
    assert not result.success
    assert result.exit_code == 1
    assert "/unknown-xyz" in result.error
    assert "/aaa-help" in result.error


def test_dispatch_dangling_alias_is_unknown(registry, capsys):
    registry.register_alias("/old", "/never-registered")
    result = registry.dispatch("/old")
    assert not result.success
    assert "Unknown command: /old" in result.error
    assert "/never-registered" in capsys.readouterr().err


def test_dispatch_empty_line():
    result = CommandRegistry().dispatch("   ")
    assert not result.success
    assert "No command provided" in result.error


def test_handler_failure_is_captured_and_registry_keeps_working(registry):
    def boom(args, options, command):
        raise RuntimeError("disk on fire")

    registry.register("/boom", boom)

    result = registry.dispatch("/boom")
    assert not result.success
    assert result.error == "disk on fire"
    assert "RuntimeError" in result.trace

    assert registry.dispatch("/aaa-status").success


def test_handler_failure_without_message_still_has_error(registry):
    def boom(args, options, command):
        raise KeyError

    registry.register("/boom", boom)
    result = registry.dispatch("/boom")
    assert not result.success
    assert result.error


def test_async_handler_is_awaited(registry):
    async def later(args, options, command):
        return f"done {args[0]}"

    registry.register("/later", later)
    result = registry.dispatch("/later now")
    assert result.success
    assert result.result == "done now"


async def _later(args, options, command):
    await asyncio.sleep(0)
    return f"done {args[0]}"


async def _explode(args, options, command):
    await asyncio.sleep(0)
    raise RuntimeError("async boom")


def test_async_handler_dispatched_inside_running_loop(registry):
    registry.register("/later", _later)

    async def host():
        return registry.dispatch("/later x"), await registry.dispatch_async("/later y")

    with warnings_module.catch_warnings():
        warnings_module.simplefilter("error", RuntimeWarning)
        from_sync, from_async = asyncio.run(host())

    assert from_sync.success, from_sync.error
    assert from_sync.result == "done x"
    assert from_async.success, from_async.error
    assert from_async.result == "done y"


def test_dispatch_async_reports_failures(registry):
    registry.register("/explode", _explode)

    async def host():
        return (
            await registry.dispatch_async("/explode"),
            await registry.dispatch_async("/nope"),
            await registry.dispatch_async("/aaa-status a --full"),
        )

    failed, unknown, plain = asyncio.run(host())
    assert not failed.success
    assert failed.error == "async boom"
    assert "RuntimeError" in failed.trace
    assert not unknown.success
    assert unknown.error.startswith("Unknown command: /nope.")
    assert plain.result["args"] == ["a"]
    assert plain.result["options"] == {"full": True}


def test_failing_async_handler_from_sync_dispatch(registry):
    registry.register("/explode", _explode)
    result = registry.dispatch("/explode")
    assert not result.success
    assert result.error == "async boom"


def test_get_help_lists_commands_by_category(registry):
    text = registry.get_help()
    assert "[state]" in text
    assert "/aaa-status - Show status" in text
    assert "exit - Exit the program" in text


def test_parse_options_flags_and_values():
    options, positional = parse_options(["--flag", "value", "--bool", "--other", "x"])
    assert options == {"flag": "value", "bool": True, "other": "x"}
    assert positional == []


def test_parse_options_keeps_positional_order():
    options, positional = parse_options(["pos1", "--k", "v", "pos2"])
    assert options == {"k": "v"}
    assert positional == ["pos1", "pos2"]


def test_parse_options_last_write_wins_and_trailing_flag():
    options, positional = parse_options(["--k", "a", "-x", "--k", "b", "--end"])
    assert options == {"k": "b", "end": True}
    assert positional == ["-x"]
