"""Fetching the next due feed and saving its items as posts."""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from functools import partial
from typing import Callable

from gator.commands import CommandError
from gator.database import DatabaseError, Queries, UniqueViolation
from gator.fetch import RSSFeed, fetch_feed
from gator.models import Post

FETCH_TIMEOUT = 2.0

_RFC1123Z = "%a, %d %b %Y %H:%M:%S %z"
_NUMERIC_OFFSET = re.compile(r"[+-]\d{4}\Z")

_log = logging.getLogger(__name__)


def parse_pub_date(value: str) -> datetime | None:
    """Parse an RFC 1123 date with a numeric zone; ``None`` if it is not one."""
    if not _NUMERIC_OFFSET.search(value):
        return None
    try:
        return datetime.strptime(value, _RFC1123Z)
    except ValueError:
        return None


def scrape_feeds(
    queries: Queries, fetch: Callable[[str], RSSFeed] | None = None
) -> list[Post]:
    """Fetch the feed due next, store its new items and return the posts created."""
    if fetch is None:
        fetch = partial(fetch_feed, timeout=FETCH_TIMEOUT)

    try:
        target = queries.get_next_feed_to_fetch()
    except DatabaseError as exc:
        raise CommandError(f"error getting the feed: {exc}") from exc

    now = datetime.now(timezone.utc)
    try:
        queries.mark_feed_fetched(target.id, now, now)
    except DatabaseError as exc:
        raise CommandError(f"error updating the feed: {exc}") from exc

    feed = fetch(target.url)
    print("Successfully scraped!")

    created = []
    for item in feed.items:
        now = datetime.now(timezone.utc)
        try:
            post = queries.create_post(
                uuid.uuid4(),
                now,
                now,
                item.title,
                item.link,
                item.description,
                parse_pub_date(item.pub_date),
                target.id,
            )
        except UniqueViolation:
            continue
        except DatabaseError as exc:
            _log.warning("Couldn't create post: %s", exc)
            continue
        created.append(post)
    return created