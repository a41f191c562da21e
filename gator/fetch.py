"""Downloading and parsing RSS feeds."""

from __future__ import annotations

import html
import urllib.error
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

USER_AGENT = "gator"

_CHANNEL_FIELDS = ("title", "link", "description")
_ITEM_FIELDS = {
    "title": "title",
    "link": "link",
    "description": "description",
    "pubDate": "pub_date",
}


class FetchError(Exception):
    """A feed could not be downloaded or parsed."""


@dataclass
class RSSItem:
    """One entry of an RSS channel."""

    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""


@dataclass
class RSSFeed:
    """An RSS channel and its items."""

    title: str = ""
    link: str = ""
    description: str = ""
    items: list[RSSItem] = field(default_factory=list)


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rpartition("}")[2]


def _text(element: ET.Element) -> str:
    """Character data directly inside ``element``, nested elements left out."""
    return (element.text or "") + "".join(child.tail or "" for child in element)


def _item(element: ET.Element) -> RSSItem:
    item = RSSItem()
    for child in element:
        attribute = _ITEM_FIELDS.get(_local_name(child.tag))
        if attribute:
            setattr(item, attribute, _text(child))
    item.title = html.unescape(item.title)
    item.description = html.unescape(item.description)
    return item


def parse_feed(data: bytes | str) -> RSSFeed:
    """Parse an RSS document, unescaping HTML entities in titles and descriptions."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise FetchError(f"error unmarshaling data: {exc}") from exc

    feed = RSSFeed()
    for channel in root:
        if _local_name(channel.tag) != "channel":
            continue
        for child in channel:
            name = _local_name(child.tag)
            if name in _CHANNEL_FIELDS:
                setattr(feed, name, _text(child))
            elif name == "item":
                feed.items.append(_item(child))

    feed.title = html.unescape(feed.title)
    feed.description = html.unescape(feed.description)
    return feed


def fetch_feed(url: str, timeout: float | None = None) -> RSSFeed:
    """Download the feed at ``url`` and parse it."""
    try:
        request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    except ValueError as exc:
        raise FetchError(f"error creating a request: {exc}") from exc

    try:
        response = urllib.request.urlopen(request, timeout=timeout)
    except urllib.error.HTTPError as exc:
        # The body of an error response is still parsed, status aside.
        response = exc
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise FetchError(f"error getting the response: {exc}") from exc

    try:
        with response:
            data = response.read()
    except (OSError, AttributeError) as exc:
        raise FetchError(f"error reading from response: {exc}") from exc

    return parse_feed(data)