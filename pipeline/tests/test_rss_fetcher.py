"""Tests for the RSS news source client."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from email.utils import format_datetime

import httpx
from phoneverse.config import FeedSource
from pipeline.news.rss_fetcher import NewsSourceClient, clean_html, parse_feed

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def _rss(*items: tuple[str, str, str | None, str]) -> str:
    entries = []
    for title, link, pub, description in items:
        pub_xml = f"<pubDate>{pub}</pubDate>" if pub else ""
        entries.append(
            f"<item><title>{title}</title><link>{link}</link>{pub_xml}"
            f"<description><![CDATA[{description}]]></description></item>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?><rss version="2.0"><channel>'
        "<title>Feed</title><link>https://feed.test/</link><description>d</description>"
        + "".join(entries)
        + "</channel></rss>"
    )


def _ago(hours: float) -> str:
    return format_datetime(NOW - timedelta(hours=hours))


FEEDS = [
    FeedSource(name="Alpha", url="https://alpha.test/rss", category="mobile-news"),
    FeedSource(name="Beta", url="https://beta.test/rss", category="reviews"),
    FeedSource(name="Broken", url="https://broken.test/rss", category="mobile-news"),
]


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "alpha.test":
        body = _rss(
            ("Phone A Launched", "https://alpha.test/a", _ago(5), "<p>Phone A &amp; more</p>"),
            ("Old Phone", "https://alpha.test/old", _ago(72), "Too old"),
        )
        return httpx.Response(200, text=body)
    if request.url.host == "beta.test":
        body = _rss(
            ("Phone B Review", "https://beta.test/b", _ago(1), "Review body"),
            ("", "https://beta.test/untitled", _ago(1), "No title"),
        )
        return httpx.Response(200, text=body)
    return httpx.Response(500, text="down")


def test_clean_html():
    assert clean_html("<p>Hello&nbsp;<b>world</b></p>\n\n  again") == "Hello world again"
    assert clean_html(None) == ""


def test_parse_feed_defaults_undated_entries_to_now():
    feed = FeedSource(name="Alpha", url="https://alpha.test/rss", category="guides")
    items = parse_feed(feed, _rss(("Undated", "https://alpha.test/u", None, "x")), NOW)
    assert len(items) == 1
    assert items[0].published_at == NOW
    assert items[0].category == "guides"
    assert items[0].source_name == "Alpha"


class TestNewsSourceClient:
    async def test_fetch_all_filters_and_sorts(self):
        client = NewsSourceClient(
            FEEDS, clock=lambda: NOW, transport=httpx.MockTransport(_handler)
        )
        items = await client.fetch_all()

        titles = [item.original_title for item in items]
        # Newest first; stale and untitled entries dropped; broken feed contributes nothing.
        assert titles == ["Phone B Review", "Phone A Launched"]
        assert items[0].category == "reviews"
        assert items[1].original_content == "Phone A & more"
        assert items[1].source_url == "https://alpha.test/a"

    async def test_all_feeds_failing_returns_empty(self):
        client = NewsSourceClient(
            FEEDS[2:], clock=lambda: NOW, transport=httpx.MockTransport(_handler)
        )
        assert await client.fetch_all() == []

    async def test_max_age_is_configurable(self):
        client = NewsSourceClient(
            FEEDS[:1],
            clock=lambda: NOW,
            max_age_hours=100,
            transport=httpx.MockTransport(_handler),
        )
        items = await client.fetch_all()
        assert [item.original_title for item in items] == ["Phone A Launched", "Old Phone"]
