"""End-to-end automation: feed XML in, moderated article rows out."""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime

import httpx
from phoneverse.config import FeedSource
from pipeline.automation import TRIGGER_MANUAL, AutomationController
from pipeline.images import ImageResolver
from pipeline.news.rss_fetcher import NewsSourceClient
from pipeline.rewriting.template import TemplateRewriter

# Matches the publisher clock in conftest.
FIXED_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def _feed_body() -> str:
    published = format_datetime(FIXED_NOW - timedelta(hours=2))
    return (
        '<?xml version="1.0" encoding="UTF-8"?><rss version="2.0"><channel>'
        "<title>Mobile</title><link>https://news.test/</link><description>d</description>"
        "<item><title>Phone X Launched Today</title>"
        "<link>https://news.test/phone-x</link>"
        f"<pubDate>{published}</pubDate>"
        "<description>Phone X arrives at $499 with a 5000mAh battery. "
        "The 6.7 inch display runs at 120Hz and the camera is 50MP.</description>"
        "</item></channel></rss>"
    )


def _news_client() -> NewsSourceClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=_feed_body())

    return NewsSourceClient(
        [FeedSource(name="News", url="https://news.test/rss", category="mobile-news")],
        clock=lambda: FIXED_NOW,
        transport=httpx.MockTransport(handler),
    )


def _controller(publisher_scope, **publisher_kwargs) -> AutomationController:
    async def no_sleep(_seconds):
        return None

    return AutomationController(
        _news_client(),
        TemplateRewriter(rng=random.Random(0)),
        ImageResolver(),
        publisher_scope(**publisher_kwargs),
        sleep=no_sleep,
        clock=lambda: FIXED_NOW,
    )


async def test_feed_item_becomes_pending_article(publisher_scope, repository):
    controller = _controller(publisher_scope, auto_approve=False)

    result = await controller.run_once(TRIGGER_MANUAL)

    assert result.saved == 1
    assert len(repository.articles) == 1
    article = next(iter(repository.articles.values()))
    assert article.status == "draft"
    assert article.approval_status == "pending"
    assert article.source_url == "https://news.test/phone-x"
    assert article.title.startswith("Phone X Launched Today")
    assert article.is_manual is False
    assert article.author_name == "PhoneVerse Desk"
    assert "$499" in article.content
    assert article.excerpt and len(article.excerpt) <= 155
    assert article.featured_image.startswith("https://picsum.photos/id/")
    assert article.word_count > 0
    assert "https://news.test/phone-x" in repository.sources


async def test_second_run_adds_nothing(publisher_scope, repository):
    controller = _controller(publisher_scope)
    await controller.run_once(TRIGGER_MANUAL)

    second = await controller.run_once(TRIGGER_MANUAL)

    assert second.fetched == 1
    assert second.saved == 0
    assert second.skipped == 1
    assert len(repository.articles) == 1
    assert controller.status()["total_runs"] == 2
    assert controller.status()["articles_processed"] == 1


async def test_cleared_sources_still_dedupe_by_article(publisher_scope, repository):
    controller = _controller(publisher_scope)
    await controller.run_once(TRIGGER_MANUAL)
    assert await repository.clear_tracked_sources() == 1

    again = await controller.run_once(TRIGGER_MANUAL)

    assert again.saved == 0
    assert len(repository.articles) == 1


async def test_auto_approve_makes_article_public(publisher_scope, repository):
    controller = _controller(publisher_scope, auto_approve=True)
    await controller.run_once(TRIGGER_MANUAL)
    article = next(iter(repository.articles.values()))
    assert article.is_public
    assert article.published_at == FIXED_NOW
