"""Protocols for the collaborators the migration engine consumes.

The engine itself never reads from stdin or looks at the wall clock
directly. The interactive selection loop talks to a Terminal and the
backup manager asks a Clock for timestamps, so both can be replaced with
scripted implementations in tests.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable
from typing import Protocol, override

type Clock = Callable[[], dt.datetime]


class Terminal(Protocol):
    """Line-based terminal used by the interactive selection loop."""

    def prompt(self, message: str) -> str:
        """Show a prompt and return one line of input.

        Raises:
            EOFError: When input is exhausted (e.g. stdin closed)
        """
        ...

    def write(self, text: str) -> None:
        """Write one line of output."""
        ...


class ConsoleTerminal(Terminal):
    """Terminal backed by stdin/stdout."""

    @override
    def prompt(self, message: str) -> str:
        return input(message)

    @override
    def write(self, text: str) -> None:
        print(text)
