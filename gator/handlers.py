"""The command handlers of the aggregator."""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Iterable

from gator.commands import Command, CommandError, State
from gator.database import DatabaseError
from gator.models import Feed, FeedFollowRow, User
from gator.scrape import scrape_feeds

SEPARATOR = "========================================="


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _expect_arguments(command: Command, count: int, message: str) -> None:
    if len(command.arguments) != count:
        raise CommandError(message)


def _save_user(state: State, name: str) -> None:
    try:
        state.config.set_user(name)
    except OSError as exc:
        raise CommandError(f"error writing to config: {exc}") from exc


def handle_login(state: State, command: Command) -> None:
    """Make an existing user the current one."""
    _expect_arguments(
        command, 1, "the login handler expects a single argument, the username"
    )
    try:
        user = state.queries.get_user(command.arguments[0])
    except DatabaseError as exc:
        raise CommandError(f"error getting user from database: {exc}") from exc
    _save_user(state, user.name)
    print("User has been set!")


def handle_register(state: State, command: Command) -> None:
    """Create a user and make it the current one."""
    _expect_arguments(
        command, 1, "the register handler expects a single argument, the username"
    )
    now = _now()
    try:
        user = state.queries.create_user(uuid.uuid4(), now, now, command.arguments[0])
    except DatabaseError as exc:
        raise CommandError(f"error adding user to database: {exc}") from exc
    _save_user(state, user.name)
    print("User has been created!")
    print(f"User name: {user.name} \n Created at: {user.created_at}")


def handle_reset(state: State, command: Command) -> None:
    """Delete every user, and with them their feeds and follows."""
    try:
        state.queries.delete_users()
    except DatabaseError as exc:
        raise CommandError(f"error while deleting users: {exc}") from exc
    print("Deleted all users from db!")


def handle_users(state: State, command: Command) -> None:
    """List all users, marking the current one."""
    try:
        users = state.queries.get_users()
    except DatabaseError as exc:
        raise CommandError(f"error while getting all users: {exc}") from exc
    current = state.config.current_user_name
    for user in users:
        suffix = " (current)" if user.name == current else ""
        print(f"* {user.name}{suffix}")


def _format_interval(seconds: float) -> str:
    return f"{seconds:g}s"


def handle_aggregate(state: State, command: Command, interval: float) -> None:
    """Scrape one feed every ``interval`` seconds until an error stops it."""
    print(f"Collecting feeds every {_format_interval(interval)}")
    while True:
        started = time.monotonic()
        scrape_feeds(state.queries)
        time.sleep(max(0.0, interval - (time.monotonic() - started)))


def format_feed(feed: Feed, user: User) -> str:
    """A printable block describing ``feed`` and its creator."""
    return "\n".join(
        [
            SEPARATOR,
            f"Name of feed: {feed.name}",
            f"Feed url: {feed.url}",
            f"Creator of feed: {user.name}",
            SEPARATOR,
        ]
    )


def format_feed_follow(follow: FeedFollowRow) -> str:
    """A printable block naming the feed and user of a follow."""
    return "\n".join(
        [
            SEPARATOR,
            f"Feed name: {follow.feed_name}",
            f"User name: {follow.user_name}",
            SEPARATOR,
        ]
    )


def format_feed_follows(follows: Iterable[FeedFollowRow]) -> str:
    """A printable list of the feeds a user follows."""
    lines = ["All feeds that user follows:"]
    for follow in follows:
        lines += [SEPARATOR, f"Feed name: {follow.feed_name}", SEPARATOR]
    return "\n".join(lines)


def handle_add_feed(state: State, command: Command, user: User) -> None:
    """Add a feed owned by ``user`` and follow it."""
    _expect_arguments(
        command,
        2,
        "the add feed handler expects two arguments, the name of the feed and url",
    )
    name, url = command.arguments
    now = _now()
    try:
        feed = state.queries.create_feed(uuid.uuid4(), now, now, name, url, user.id)
    except DatabaseError as exc:
        raise CommandError(f"error creating a feed: {exc}") from exc

    print("Successfully created new feed!")
    print(format_feed(feed, user))

    now = _now()
    try:
        follow = state.queries.create_feed_follow(uuid.uuid4(), now, now, user.id, feed.id)
    except DatabaseError as exc:
        raise CommandError(f"couldn't create feed follow: {exc}") from exc
    print(f"Followed {follow.feed_name}")


def handle_feeds(state: State, command: Command) -> None:
    """List every feed with its creator."""
    try:
        feeds = state.queries.get_feeds()
    except DatabaseError as exc:
        raise CommandError(f"error getting feeds: {exc}") from exc
    for feed in feeds:
        try:
            user = state.queries.get_user_by_id(feed.user_id)
        except DatabaseError as exc:
            raise CommandError(f"error getting user by id: {exc}") from exc
        print(format_feed(feed, user))


def _feed_by_url(state: State, url: str) -> Feed:
    try:
        return state.queries.get_feed_by_url(url)
    except DatabaseError as exc:
        raise CommandError(f"error getting the feed: {exc}") from exc


def handle_follow(state: State, command: Command, user: User) -> None:
    """Make ``user`` follow the feed at the given URL."""
    _expect_arguments(
        command, 1, "follow command needs only one parameter and that is url"
    )
    feed = _feed_by_url(state, command.arguments[0])
    now = _now()
    try:
        follow = state.queries.create_feed_follow(uuid.uuid4(), now, now, user.id, feed.id)
    except DatabaseError as exc:
        raise CommandError(f"error creating feed follow: {exc}") from exc
    print("Successfully created feed follow!")
    print(format_feed_follow(follow))


def handle_following(state: State, command: Command, user: User) -> None:
    """List the feeds ``user`` follows."""
    try:
        follows = state.queries.get_feed_follows_for_user(user.id)
    except DatabaseError as exc:
        raise CommandError(f"error getting the feed follows: {exc}") from exc
    print(format_feed_follows(follows))


def handle_unfollow(state: State, command: Command, user: User) -> None:
    """Stop ``user`` following the feed at the given URL."""
    _expect_arguments(
        command, 1, "the unfollow handler expects a single argument, the feed url"
    )
    feed = _feed_by_url(state, command.arguments[0])
    try:
        state.queries.delete_feed_follow(user.id, feed.id)
    except DatabaseError as exc:
        raise CommandError(f"error deleting the feed follow: {exc}") from exc