"""Interactive console for the dispatcher loop.

Wraps GNU readline (where available) so command lines can be edited and
recalled, and keeps a history file across runs. Only distinct consecutive
command lines are remembered, so repeating /aaa-status does not flood the
history.
"""
from __future__ import annotations

import atexit
import os
import sys
from typing import Optional

from settings import get_history_file


DEFAULT_HISTORY_LENGTH = 1000


def _load_readline():
    try:
        import readline  # type: ignore
    except ImportError:
        return None
    return readline


class Console:
    """Reads command lines and owns the readline history."""

    def __init__(self, history_file: Optional[str] = None, history_length: int = DEFAULT_HISTORY_LENGTH):
        self.history_file = history_file or get_history_file()
        self.history_length = history_length
        self._readline = None

    def start(self, save_on_exit: bool = True) -> None:
        """Load the history file. Safe no-op if readline is unavailable."""
        self._readline = _load_readline()
        if self._readline is None:
            return

        # History entries are added by remember(), not by input()
        self._readline.set_auto_history(False)
        self._readline.clear_history()
        self._readline.set_history_length(self.history_length)
        if os.path.exists(self.history_file):
            try:
                self._readline.read_history_file(self.history_file)
            except OSError as exc:
                print(f"Could not read history file {self.history_file}: {exc}", file=sys.stderr)

        if save_on_exit:
            atexit.register(self.save_history)

    def save_history(self) -> None:
        if self._readline is None:
            return
        directory = os.path.dirname(self.history_file)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._readline.write_history_file(self.history_file)
        except OSError as exc:
            print(f"Could not save history file {self.history_file}: {exc}", file=sys.stderr)

    def remember(self, line: str) -> bool:
        """Add a line to the history unless it is empty or repeats the last entry."""
        if self._readline is None or not line.strip():
            return False
        length = self._readline.get_current_history_length()
        last = self._readline.get_history_item(length) if length else None
        if line == last:
            return False
        self._readline.add_history(line)
        return True

    def read_command(self, prompt: str = "> ") -> str:
        """Read one command line and record it in the history."""
        line = input(prompt)
        self.remember(line)
        return line


def confirm(question: str, default: bool = False) -> bool:
    """Ask a yes/no question; an empty answer returns ``default``."""
    hint = "Y/n" if default else "y/N"
    try:
        answer = input(f"{question} ({hint}): ").strip().lower()
    except EOFError:
        return default
    if not answer:
        return default
    return answer in {"y", "yes"}


__all__ = ["Console", "confirm"]
