import pytest

from gator.fetch import FetchError, RSSFeed, RSSItem, fetch_feed, parse_feed

SAMPLE = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
<title>Example &amp;amp; Co</title>
<link>https://example.com/</link>
<description>News &amp;lt;daily&amp;gt;</description>
<item><title>First</title><link>https://example.com/1</link><description>One</description><pubDate>Mon, 02 Jan 2006 15:04:05 -0700</pubDate></item>
<item><title>Second</title><link>https://example.com/2</link><description>Two</description></item>
</channel></rss>"""


def test_parse_channel_fields():
    feed = parse_feed(SAMPLE)
    assert feed.title == "Example & Co"
    assert feed.link == "https://example.com/"
    assert feed.description == "News <daily>"


def test_parse_items_in_order():
    feed = parse_feed(SAMPLE)
    assert [item.title for item in feed.items] == ["First", "Second"]
    assert feed.items[0] == RSSItem(
        title="First",
        link="https://example.com/1",
        description="One",
        pub_date="Mon, 02 Jan 2006 15:04:05 -0700",
    )


def test_missing_elements_are_empty():
    feed = parse_feed(SAMPLE)
    assert feed.items[1].pub_date == ""


def test_document_without_channel_is_empty():
    assert parse_feed(b"<rss></rss>") == RSSFeed()


def test_accepts_text_input():
    assert parse_feed(SAMPLE.decode("utf-8")) == parse_feed(SAMPLE)


def test_cdata_is_kept_as_text():
    doc = b"<rss><channel><item><description><![CDATA[<p>Hi</p>]]></description></item></channel></rss>"
    assert parse_feed(doc).items[0].description == "<p>Hi</p>"


def test_namespaced_elements_match_by_local_name():
    doc = (
        b'<rss xmlns="urn:example:feed"><channel><title>Spaced</title>'
        b"<item><title>Inside</title></item></channel></rss>"
    )
    feed = parse_feed(doc)
    assert feed.title == "Spaced"
    assert [item.title for item in feed.items] == ["Inside"]


def test_link_is_not_unescaped():
    doc = b"<rss><channel><item><link>https://example.com/?a=1&amp;amp;b=2</link></item></channel></rss>"
    assert parse_feed(doc).items[0].link == "https://example.com/?a=1&amp;b=2"


@pytest.mark.parametrize("data", [b"", b"<rss><channel>", b"not xml at all"])
def test_malformed_document_raises(data):
    with pytest.raises(FetchError, match="error unmarshaling data"):
        parse_feed(data)


def test_fetch_local_file_round_trip(tmp_path):
    path = tmp_path / "feed.xml"
    path.write_bytes(SAMPLE)
    assert fetch_feed(path.as_uri(), 1.0) == parse_feed(SAMPLE)


def test_fetch_missing_file_raises(tmp_path):
    with pytest.raises(FetchError, match="error getting the response"):
        fetch_feed((tmp_path / "absent.xml").as_uri(), 1.0)


def test_fetch_invalid_url_raises():
    with pytest.raises(FetchError, match="error creating a request"):
        fetch_feed("not a url", 1.0)