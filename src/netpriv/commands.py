"""Subcommand definitions and registry for the netpriv command line."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List

if TYPE_CHECKING:
    from .registry import PlatformRegistry

Handler = Callable[[argparse.Namespace, "PlatformRegistry"], int]


@dataclass(frozen=True)
class Command:
    """A subcommand of the ``netpriv`` program."""

    name: str  # e.g., "path"
    handler: Handler  # returns the process exit code
    short_description: str = "(no help given)"

    def __post_init__(self) -> None:
        if not self.name or " " in self.name:
            raise ValueError(f"A command needs a single-word name: {self}")


class CommandRegistry:
    """Maps subcommand names to their handlers."""

    def __init__(self) -> None:
        self._by_name: Dict[str, Command] = {}

    def register(self, cmd: Command) -> None:
        """Registers a `Command` in the `CommandRegistry`."""
        if cmd.name in self._by_name:
            raise ValueError(f"duplicate command: {cmd.name}")
        self._by_name[cmd.name] = cmd

    def resolve(self, name: str) -> Command:
        if not name:
            raise ValueError("empty input")
        try:
            return self._by_name[name]
        except KeyError:
            raise ValueError(f'unknown command: "{name}"') from None

    def commands(self) -> List[Command]:
        return sorted(self._by_name.values(), key=lambda c: c.name)


# Global registry instance for auto-registration
_registry = CommandRegistry()


def command(name: str, description: str = "(no help given)"):
    """Decorator to auto-register subcommand handlers."""

    def decorator(func: Handler) -> Handler:
        _registry.register(Command(name=name, handler=func, short_description=description))
        return func

    return decorator
