"""Article publishing: slugs, duplicate detection, status assignment and moderation."""

from __future__ import annotations

import logging
import re
import threading
import time
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from phoneverse.config import Settings, get_settings
from phoneverse.database import get_session
from phoneverse.errors import NotFoundError
from phoneverse.models.article import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    Article,
)
from phoneverse.schemas.articles import ArticleDraft
from phoneverse.services.article_repository import ArticleRepository

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def slugify(title: str, max_length: int = 100) -> str:
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:max_length].rstrip("-")


class SlugGenerator:
    """Title slug plus a base36 millisecond suffix.

    Two slugs requested in the same millisecond (or after the clock stepped
    backwards) get an extra ``-<n>`` counter so they never collide within a
    process.
    """

    def __init__(self, clock: Callable[[], float] = time.time, max_length: int = 100) -> None:
        self._clock = clock
        self.max_length = max_length
        self._last_ms = -1
        self._sequence = 0
        self._lock = threading.Lock()

    def generate(self, title: str) -> str:
        base = slugify(title, self.max_length) or "article"
        now_ms = int(self._clock() * 1000)
        with self._lock:
            if now_ms > self._last_ms:
                self._last_ms = now_ms
                self._sequence = 0
                return f"{base}-{to_base36(now_ms)}"
            self._sequence += 1
            return f"{base}-{to_base36(self._last_ms)}-{self._sequence}"


class ArticlePublisher:
    """Persists drafts and applies moderation transitions through a repository."""

    def __init__(
        self,
        repository: ArticleRepository,
        *,
        auto_approve: bool = False,
        auto_approve_manual: bool = False,
        title_prefix_length: int = 40,
        default_author_name: str | None = None,
        slugger: SlugGenerator | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.auto_approve = auto_approve
        self.auto_approve_manual = auto_approve_manual
        self.title_prefix_length = title_prefix_length
        self.default_author_name = default_author_name
        self.slugger = slugger or SlugGenerator()
        self.clock = clock

    async def is_duplicate(self, source_url: str | None, title: str) -> bool:
        """Source URL (articles, then tracked sources), exact title, then title prefix."""
        if source_url:
            if await self.repository.exists_by_source_url(source_url):
                return True
            if await self.repository.is_source_tracked(source_url):
                return True
        if await self.repository.exists_by_title(title):
            return True
        if self.title_prefix_length > 0:
            return await self.repository.exists_by_title_prefix(title, self.title_prefix_length)
        return False

    async def publish(
        self,
        draft: ArticleDraft,
        *,
        is_manual: bool = False,
        user_id: uuid.UUID | None = None,
        author_name: str | None = None,
    ) -> uuid.UUID | None:
        """Insert ``draft`` and return its id, or ``None`` when it is a duplicate."""
        slug = self.slugger.generate(draft.title)

        if await self.is_duplicate(draft.source_url, draft.title):
            logger.info("Duplicate skipped: %s", draft.title[:60])
            return None

        approved = self.auto_approve_manual if is_manual else self.auto_approve
        now = self.clock()
        article = Article(
            id=uuid.uuid4(),
            title=draft.title,
            slug=slug,
            content=draft.content,
            excerpt=draft.excerpt,
            category=draft.category,
            featured_image=draft.featured_image,
            source_url=draft.source_url,
            author_name=author_name or self.default_author_name,
            status=STATUS_PUBLISHED if approved else STATUS_DRAFT,
            approval_status=APPROVAL_APPROVED if approved else APPROVAL_PENDING,
            is_manual=is_manual,
            view_count=0,
            word_count=draft.word_count,
            author_id=user_id,
            approved_at=now if approved else None,
            published_at=now if approved else None,
            created_at=now,
        )
        await self.repository.insert_article(article)

        if draft.source_url:
            try:
                await self.repository.track_source(draft.source_url, draft.title, article.id)
            except Exception as exc:
                logger.warning("Source tracking failed for %s: %s", draft.source_url, exc)

        if user_id is not None:
            await self.repository.adjust_user_article_count(user_id, 1)

        logger.info(
            "%s: %s (%s)",
            "Published" if approved else "Pending review",
            draft.title[:60],
            slug,
        )
        return article.id

    async def _require(self, article_id: uuid.UUID) -> Article:
        article = await self.repository.get_article(article_id)
        if article is None:
            raise NotFoundError("Article not found")
        return article

    async def approve(self, article_id: uuid.UUID, admin_id: uuid.UUID | None) -> Article:
        article = await self._require(article_id)
        now = self.clock()
        article.status = STATUS_PUBLISHED
        article.approval_status = APPROVAL_APPROVED
        article.approved_by = admin_id
        article.approved_at = now
        article.rejection_reason = None
        if article.published_at is None:
            article.published_at = now
        await self.repository.save(article)
        if article.author_id is not None:
            await self.repository.refresh_user_stats(article.author_id)
        logger.info("Article approved: %s", article_id)
        return article

    async def reject(self, article_id: uuid.UUID, reason: str | None = None) -> Article:
        article = await self._require(article_id)
        article.status = STATUS_DRAFT
        article.approval_status = APPROVAL_REJECTED
        article.rejection_reason = reason or "Does not meet quality standards"
        await self.repository.save(article)
        logger.info("Article rejected: %s", article_id)
        return article

    async def delete(self, article_id: uuid.UUID) -> None:
        article = await self._require(article_id)
        author_id = article.author_id
        await self.repository.delete_article(article)
        if author_id is not None:
            await self.repository.adjust_user_article_count(author_id, -1)
        logger.info("Article deleted: %s", article_id)


_shared_slugger = SlugGenerator()


def build_publisher(
    repository: ArticleRepository,
    settings: Settings | None = None,
) -> ArticlePublisher:
    """Publisher configured from settings, sharing one process-wide slug generator."""
    settings = settings or get_settings()
    return ArticlePublisher(
        repository,
        auto_approve=settings.auto_approve_articles,
        auto_approve_manual=settings.auto_approve_user_articles,
        title_prefix_length=settings.duplicate_title_prefix_length,
        default_author_name=settings.default_author_name,
        slugger=_shared_slugger,
    )


@asynccontextmanager
async def publisher_session_scope(
    settings: Settings | None = None,
) -> AsyncIterator[ArticlePublisher]:
    """One database transaction wrapped in a publisher."""
    async with get_session() as session:
        yield build_publisher(ArticleRepository(session), settings)
