"""SQLite-backed storage for users, feeds, feed follows and posts."""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from gator.models import Feed, FeedFollowRow, Post, User

_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS feeds (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    last_fetched_at TEXT
);
CREATE TABLE IF NOT EXISTS feed_follows (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
    UNIQUE (user_id, feed_id)
);
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    title TEXT,
    url TEXT UNIQUE,
    description TEXT,
    published_at TEXT,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE
);
"""

_USER_COLUMNS = "id, created_at, updated_at, name"
_FEED_COLUMNS = "id, created_at, updated_at, name, url, user_id, last_fetched_at"
_POST_COLUMNS = (
    "id, created_at, updated_at, title, url, description, published_at, feed_id"
)


class DatabaseError(Exception):
    """A query failed."""


class RecordNotFound(DatabaseError):
    """A query that expects one row found none."""


class UniqueViolation(DatabaseError):
    """An insert would duplicate a value that must be unique."""


def _time_to_db(value: datetime | None) -> str | None:
    # Naive datetimes are taken as local time; everything is stored in UTC.
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime(_TIME_FORMAT)


def _time_from_db(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.strptime(value, _TIME_FORMAT).replace(tzinfo=timezone.utc)


def _user(row: sqlite3.Row) -> User:
    return User(
        id=uuid.UUID(row["id"]),
        created_at=_time_from_db(row["created_at"]),
        updated_at=_time_from_db(row["updated_at"]),
        name=row["name"],
    )


def _feed(row: sqlite3.Row) -> Feed:
    return Feed(
        id=uuid.UUID(row["id"]),
        created_at=_time_from_db(row["created_at"]),
        updated_at=_time_from_db(row["updated_at"]),
        name=row["name"],
        url=row["url"],
        user_id=uuid.UUID(row["user_id"]),
        last_fetched_at=_time_from_db(row["last_fetched_at"]),
    )


def _follow_row(row: sqlite3.Row) -> FeedFollowRow:
    return FeedFollowRow(
        id=uuid.UUID(row["id"]),
        created_at=_time_from_db(row["created_at"]),
        updated_at=_time_from_db(row["updated_at"]),
        user_id=uuid.UUID(row["user_id"]),
        feed_id=uuid.UUID(row["feed_id"]),
        feed_name=row["feed_name"],
        user_name=row["user_name"],
    )


def _post(row: sqlite3.Row) -> Post:
    return Post(
        id=uuid.UUID(row["id"]),
        created_at=_time_from_db(row["created_at"]),
        updated_at=_time_from_db(row["updated_at"]),
        title=row["title"],
        url=row["url"],
        description=row["description"],
        published_at=_time_from_db(row["published_at"]),
        feed_id=uuid.UUID(row["feed_id"]),
    )


def _translate(exc: sqlite3.Error) -> DatabaseError:
    message = str(exc)
    if isinstance(exc, sqlite3.IntegrityError) and "UNIQUE constraint failed" in message:
        return UniqueViolation(message)
    return DatabaseError(message)


def connect(url: str) -> "Queries":
    """Open the database at ``url`` (a path or ``sqlite://<path>``) and ensure its schema."""
    if not url:
        raise DatabaseError("no database url configured")
    path = url[len("sqlite://"):] if url.startswith("sqlite://") else url
    try:
        connection = sqlite3.connect(path)
    except sqlite3.Error as exc:
        raise DatabaseError(f"cannot open database {url!r}: {exc}") from exc
    queries = Queries(connection)
    queries.create_schema()
    return queries


class Queries:
    """Typed queries over one SQLite connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._in_transaction = False

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        try:
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise _translate(exc) from exc

    @contextmanager
    def transaction(self) -> Iterator["Queries"]:
        """Group writes: commit them together, or roll all back on error."""
        if self._in_transaction:
            raise DatabaseError("a transaction is already in progress")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()
        finally:
            self._in_transaction = False

    @contextmanager
    def _writing(self) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            if not self._in_transaction:
                self._conn.rollback()
            raise _translate(exc) from exc
        else:
            if not self._in_transaction:
                self._conn.commit()

    def _one(self, sql: str, params: tuple = ()) -> sqlite3.Row:
        try:
            row = self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise _translate(exc) from exc
        if row is None:
            raise RecordNotFound("no rows in result set")
        return row

    def _all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise _translate(exc) from exc

    # users

    def create_user(self, user_id, created_at, updated_at, name) -> User:
        with self._writing():
            row = self._conn.execute(
                f"INSERT INTO users ({_USER_COLUMNS}) VALUES (?, ?, ?, ?) "
                f"RETURNING {_USER_COLUMNS}",
                (str(user_id), _time_to_db(created_at), _time_to_db(updated_at), name),
            ).fetchone()
        return _user(row)

    def delete_users(self) -> None:
        with self._writing():
            self._conn.execute("DELETE FROM users")

    def get_user(self, name) -> User:
        return _user(self._one(f"SELECT {_USER_COLUMNS} FROM users WHERE name = ?", (name,)))

    def get_user_by_id(self, user_id) -> User:
        return _user(
            self._one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (str(user_id),))
        )

    def get_users(self) -> list[User]:
        return [_user(row) for row in self._all(f"SELECT {_USER_COLUMNS} FROM users")]

    # feeds

    def create_feed(self, feed_id, created_at, updated_at, name, url, user_id) -> Feed:
        with self._writing():
            row = self._conn.execute(
                "INSERT INTO feeds (id, created_at, updated_at, name, url, user_id) "
                f"VALUES (?, ?, ?, ?, ?, ?) RETURNING {_FEED_COLUMNS}",
                (
                    str(feed_id), _time_to_db(created_at), _time_to_db(updated_at),
                    name, url, str(user_id),
                ),
            ).fetchone()
        return _feed(row)

    def get_feed_by_url(self, url) -> Feed:
        return _feed(self._one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE url = ?", (url,)))

    def get_feeds(self) -> list[Feed]:
        return [_feed(row) for row in self._all(f"SELECT {_FEED_COLUMNS} FROM feeds")]

    def get_next_feed_to_fetch(self) -> Feed:
        """The feed fetched longest ago, never-fetched feeds first."""
        return _feed(
            self._one(
                f"SELECT {_FEED_COLUMNS} FROM feeds "
                "ORDER BY last_fetched_at IS NOT NULL, last_fetched_at ASC LIMIT 1"
            )
        )

    def mark_feed_fetched(self, feed_id, updated_at, last_fetched_at) -> None:
        with self._writing():
            self._conn.execute(
                "UPDATE feeds SET updated_at = ?, last_fetched_at = ? WHERE id = ?",
                (_time_to_db(updated_at), _time_to_db(last_fetched_at), str(feed_id)),
            )

    # feed follows

    def create_feed_follow(self, follow_id, created_at, updated_at, user_id, feed_id) -> FeedFollowRow:
        with self._writing():
            self._conn.execute(
                "INSERT INTO feed_follows (id, created_at, updated_at, user_id, feed_id) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    str(follow_id), _time_to_db(created_at), _time_to_db(updated_at),
                    str(user_id), str(feed_id),
                ),
            )
            row = self._conn.execute(
                "SELECT feed_follows.id, feed_follows.created_at, feed_follows.updated_at, "
                "feed_follows.user_id, feed_follows.feed_id, "
                "feeds.name AS feed_name, users.name AS user_name "
                "FROM feed_follows "
                "INNER JOIN users ON feed_follows.user_id = users.id "
                "INNER JOIN feeds ON feed_follows.feed_id = feeds.id "
                "WHERE feed_follows.id = ?",
                (str(follow_id),),
            ).fetchone()
        if row is None:
            raise RecordNotFound("no rows in result set")
        return _follow_row(row)

    def delete_feed_follow(self, user_id, feed_id) -> None:
        with self._writing():
            self._conn.execute(
                "DELETE FROM feed_follows WHERE user_id = ? AND feed_id = ?",
                (str(user_id), str(feed_id)),
            )

    def get_feed_follows_for_user(self, user_id) -> list[FeedFollowRow]:
        rows = self._all(
            "SELECT feed_follows.id, feed_follows.created_at, feed_follows.updated_at, "
            "feed_follows.user_id, feed_follows.feed_id, "
            "feeds.name AS feed_name, users.name AS user_name "
            "FROM feed_follows "
            "INNER JOIN feeds ON feed_follows.feed_id = feeds.id "
            "INNER JOIN users ON feed_follows.user_id = users.id "
            "WHERE feed_follows.user_id = ?",
            (str(user_id),),
        )
        return [_follow_row(row) for row in rows]

    # posts

    def create_post(
        self, post_id, created_at, updated_at, title, url, description, published_at, feed_id
    ) -> Post:
        with self._writing():
            row = self._conn.execute(
                f"INSERT INTO posts ({_POST_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
                f"RETURNING {_POST_COLUMNS}",
                (
                    str(post_id), _time_to_db(created_at), _time_to_db(updated_at),
                    title, url, description, _time_to_db(published_at), str(feed_id),
                ),
            ).fetchone()
        return _post(row)

    def get_posts_for_user(self, feed_id, limit) -> list[Post]:
        """The newest posts of a feed, most recently updated first."""
        if limit < 0:
            raise ValueError("limit must not be negative")
        rows = self._all(
            f"SELECT {_POST_COLUMNS} FROM posts WHERE feed_id = ? "
            "ORDER BY updated_at DESC LIMIT ?",
            (str(feed_id), limit),
        )
        return [_post(row) for row in rows]