"""Integration test configuration."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import pytest
from phoneverse.services.publisher import ArticlePublisher, SlugGenerator

FIXED_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


class InMemoryArticleRepository:
    """Dict-backed stand-in for ArticleRepository with the same coroutine surface."""

    def __init__(self):
        self.articles: dict[uuid.UUID, object] = {}
        self.sources: dict[str, dict] = {}
        self.user_counts: dict[uuid.UUID, int] = {}
        self.refreshed: list[uuid.UUID] = []
        self.fail_tracking = False

    async def exists_by_source_url(self, source_url):
        return any(a.source_url == source_url for a in self.articles.values())

    async def is_source_tracked(self, source_url):
        return source_url in self.sources

    async def exists_by_title(self, title):
        return any(a.title == title for a in self.articles.values())

    async def exists_by_title_prefix(self, title, prefix_length):
        prefix = title[:prefix_length]
        return any(a.title[:prefix_length] == prefix for a in self.articles.values())

    async def insert_article(self, article):
        self.articles[article.id] = article
        return article

    async def track_source(self, source_url, title, article_id):
        if self.fail_tracking:
            raise RuntimeError("unique violation")
        self.sources[source_url] = {"title": title, "article_id": article_id}

    async def save(self, article):
        return article

    async def delete_article(self, article):
        self.articles.pop(article.id, None)

    async def get_article(self, article_id):
        return self.articles.get(article_id)

    async def adjust_user_article_count(self, user_id, delta):
        self.user_counts[user_id] = max(self.user_counts.get(user_id, 0) + delta, 0)

    async def refresh_user_stats(self, user_id):
        self.refreshed.append(user_id)
        self.user_counts[user_id] = sum(
            1 for a in self.articles.values() if a.author_id == user_id
        )

    async def clear_tracked_sources(self):
        removed = len(self.sources)
        self.sources.clear()
        return removed


@pytest.fixture
def repository():
    return InMemoryArticleRepository()


@pytest.fixture
def make_publisher(repository):
    """Build a publisher over the shared in-memory repository."""

    def _make(**kwargs):
        kwargs.setdefault("clock", lambda: FIXED_NOW)
        kwargs.setdefault("default_author_name", "PhoneVerse Desk")
        kwargs.setdefault("slugger", SlugGenerator())
        return ArticlePublisher(repository, **kwargs)

    return _make


@pytest.fixture
def publisher_scope(make_publisher):
    """Factory of per-transaction publisher contexts, like publisher_session_scope."""

    def _scope_factory(**kwargs):
        @asynccontextmanager
        async def _scope():
            yield make_publisher(**kwargs)

        return _scope

    return _scope_factory
