"""Command-line entry point of the aggregator."""

from __future__ import annotations

import functools
import sys
from typing import Callable, Sequence

from gator import config
from gator.commands import Command, CommandError, Commands, State
from gator.database import DatabaseError, connect
from gator.fetch import FetchError
from gator.handlers import (
    handle_add_feed,
    handle_aggregate,
    handle_feeds,
    handle_follow,
    handle_following,
    handle_login,
    handle_register,
    handle_reset,
    handle_unfollow,
    handle_users,
)
from gator.models import User

DEFAULT_INTERVAL = 2.0


def logged_in(
    handler: Callable[[State, Command, User], None]
) -> Callable[[State, Command], None]:
    """Wrap ``handler`` so it receives the current user."""

    @functools.wraps(handler)
    def wrapper(state: State, command: Command) -> None:
        try:
            user = state.queries.get_user(state.config.current_user_name)
        except DatabaseError as exc:
            raise CommandError(f"error getting user from database: {exc}") from exc
        handler(state, command, user)

    return wrapper


def with_interval(
    handler: Callable[[State, Command, float], None], interval: float = DEFAULT_INTERVAL
) -> Callable[[State, Command], None]:
    """Wrap ``handler`` so it receives a fixed interval in seconds."""

    @functools.wraps(handler)
    def wrapper(state: State, command: Command) -> None:
        handler(state, command, interval)

    return wrapper


def build_commands() -> Commands:
    """The registry of every command the program offers."""
    commands = Commands()
    commands.register("login", handle_login)
    commands.register("register", handle_register)
    commands.register("reset", handle_reset)
    commands.register("users", handle_users)
    commands.register("agg", with_interval(handle_aggregate))
    commands.register("addfeed", logged_in(handle_add_feed))
    commands.register("feeds", handle_feeds)
    commands.register("follow", logged_in(handle_follow))
    commands.register("following", logged_in(handle_following))
    commands.register("unfollow", logged_in(handle_unfollow))
    return commands


def _fail(message: str) -> int:
    print(f"gator: {message}", file=sys.stderr)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run one command from ``argv``; return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)

    try:
        cfg = config.read()
    except (OSError, ValueError) as exc:
        return _fail(f"error reading the config: {exc}")

    try:
        queries = connect(cfg.db_url)
    except DatabaseError as exc:
        return _fail(f"error connecting to the database: {exc}")

    if not args:
        return _fail("not enough arguments provided")

    try:
        build_commands().run(State(queries, cfg), Command(args[0], args[1:]))
    except (CommandError, DatabaseError, FetchError) as exc:
        return _fail(str(exc))
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())