"""RSS news source client."""

from __future__ import annotations

import calendar
import html
import logging
import re
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import feedparser
import httpx

from phoneverse.config import FeedSource
from phoneverse.schemas.articles import NewsItem

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

USER_AGENT = "Mozilla/5.0 (compatible; PhoneVerseBot/1.0; +https://phoneverse.local)"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clean_html(text: str | None) -> str:
    """Strip tags, decode entities and collapse whitespace."""
    if not text:
        return ""
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def _entry_content(entry: Any) -> str:
    # feedparser maps content:encoded onto entry.content
    contents = entry.get("content") or []
    for block in contents:
        value = block.get("value") if isinstance(block, dict) else None
        if value:
            return value
    return entry.get("summary") or entry.get("description") or ""


def _entry_published(entry: Any) -> datetime | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return None


def parse_feed(feed: FeedSource, body: str, now: datetime) -> list[NewsItem]:
    parsed = feedparser.parse(body)
    items: list[NewsItem] = []
    for entry in parsed.entries:
        title = clean_html(entry.get("title"))
        link = (entry.get("link") or "").strip()
        if not title or not link:
            continue
        items.append(
            NewsItem(
                original_title=title,
                original_content=clean_html(_entry_content(entry)),
                source_url=link,
                published_at=_entry_published(entry) or now,
                category=feed.category,
                source_name=feed.name,
            )
        )
    return items


class NewsSourceClient:
    """Fetches every configured feed once and returns fresh items, newest first."""

    def __init__(
        self,
        feeds: Sequence[FeedSource],
        *,
        timeout: float = 10.0,
        max_age_hours: float = 48.0,
        clock: Callable[[], datetime] = _utcnow,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.feeds = list(feeds)
        self.timeout = timeout
        self.max_age = timedelta(hours=max_age_hours)
        self.clock = clock
        self._transport = transport

    async def _fetch_feed(self, client: httpx.AsyncClient, feed: FeedSource) -> list[NewsItem]:
        response = await client.get(feed.url)
        response.raise_for_status()
        return parse_feed(feed, response.text, self.clock())

    async def fetch_all(self) -> list[NewsItem]:
        all_items: list[NewsItem] = []
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for feed in self.feeds:
                try:
                    items = await self._fetch_feed(client, feed)
                except Exception as e:
                    logger.warning("Feed %s failed: %s", feed.name, e)
                    continue
                logger.info("Feed %s: %d items", feed.name, len(items))
                all_items.extend(items)

        cutoff = self.clock() - self.max_age
        fresh = [item for item in all_items if item.published_at >= cutoff]
        fresh.sort(key=lambda item: item.published_at, reverse=True)
        logger.info("Fetched %d items, %d within %s", len(all_items), len(fresh), self.max_age)
        return fresh
