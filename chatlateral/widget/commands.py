"""Slash commands typed into the widget.

A message starting with ``/`` never reaches the response mapping. It is split
into a command name and whitespace-separated arguments and handed to the
function the host registered for that name.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Union

CommandResult = Union[str, Awaitable[str]]
CommandFunction = Callable[[list[str]], CommandResult]

COMMAND_PREFIX = "/"


def parse_command(text: str) -> tuple[str, list[str]] | None:
    """Split ``/name arg1 arg2`` into ``("name", ["arg1", "arg2"])``.

    Returns None when the text is not a command.
    """
    stripped = text.strip()
    if not stripped.startswith(COMMAND_PREFIX):
        return None
    parts = stripped[len(COMMAND_PREFIX):].split()
    if not parts:
        return None
    return parts[0], parts[1:]


def unknown_command_reply(name: str) -> str:
    return f"Comando “/{name}” não reconhecido."


class CommandRegistry:
    """Host-registered command functions, looked up by name."""

    def __init__(self) -> None:
        self._commands: dict[str, CommandFunction] = {}

    def register(self, name: str, fn: CommandFunction) -> None:
        """Register (or replace) the function run for ``/name``."""
        name = name.lstrip(COMMAND_PREFIX)
        if not name:
            raise ValueError("command name cannot be empty")
        self._commands[name] = fn

    def unregister(self, name: str) -> bool:
        return self._commands.pop(name.lstrip(COMMAND_PREFIX), None) is not None

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def names(self) -> list[str]:
        return sorted(self._commands)

    def execute(self, name: str, args: list[str]) -> CommandResult:
        """Run a command. Unknown names produce the not-recognized reply."""
        fn = self._commands.get(name)
        if fn is None:
            return unknown_command_reply(name)
        return fn(args)
