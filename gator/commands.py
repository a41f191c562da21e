"""Named commands and the registry that dispatches them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

from gator.config import Config
from gator.database import Queries


class CommandError(Exception):
    """A command could not be run or failed."""


@dataclass
class State:
    """What every command handler works with."""

    queries: Queries
    config: Config


@dataclass(frozen=True)
class Command:
    """A command name and its arguments, as given on the command line."""

    name: str
    arguments: Sequence[str] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))


Handler = Callable[[State, Command], None]


@dataclass
class Commands:
    """A registry of command handlers by name."""

    handlers: dict[str, Handler] = field(default_factory=dict)

    def register(self, name: str, handler: Handler) -> None:
        """Make ``handler`` run for the command ``name``."""
        self.handlers[name] = handler

    def run(self, state: State, command: Command) -> None:
        """Run the handler registered for ``command``."""
        try:
            handler = self.handlers[command.name]
        except KeyError:
            raise CommandError("command not found") from None
        handler(state, command)