"""Article persistence and duplicate lookups.

Every statement here is built with SQLAlchemy expressions, so user input only
ever reaches the database as bound parameters. Public listings all filter on
``Article.publicly_visible()``.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import delete, func, literal_column, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from phoneverse.models import Article, NewsSourceRecord, User


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ArticleRepository:
    """Queries over the articles, news_sources and users tables."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Duplicate detection ---

    async def exists_by_source_url(self, source_url: str) -> bool:
        result = await self.session.execute(
            select(Article.id).where(Article.source_url == source_url).limit(1)
        )
        return result.scalars().first() is not None

    async def is_source_tracked(self, source_url: str) -> bool:
        result = await self.session.execute(
            select(NewsSourceRecord.id).where(NewsSourceRecord.source_url == source_url).limit(1)
        )
        return result.scalars().first() is not None

    async def exists_by_title(self, title: str) -> bool:
        result = await self.session.execute(
            select(Article.id).where(Article.title == title).limit(1)
        )
        return result.scalars().first() is not None

    async def exists_by_title_prefix(self, title: str, prefix_length: int) -> bool:
        """Match when both titles share the same first ``prefix_length`` characters."""
        prefix = title[:prefix_length]
        # Inline bounds so the planner can match idx_articles_title_prefix.
        leading = func.substr(
            Article.title, literal_column("1"), literal_column(str(int(prefix_length)))
        )
        result = await self.session.execute(
            select(Article.id)
            .where(leading == prefix)
            .limit(1)
        )
        return result.scalars().first() is not None

    # --- Writes ---

    async def insert_article(self, article: Article) -> Article:
        self.session.add(article)
        await self.session.flush()
        return article

    async def track_source(self, source_url: str, title: str, article_id: uuid.UUID) -> None:
        # SAVEPOINT so a unique-key race does not roll back the article insert.
        async with self.session.begin_nested():
            self.session.add(
                NewsSourceRecord(source_url=source_url, title=title, article_id=article_id)
            )

    async def save(self, article: Article) -> Article:
        await self.session.flush()
        return article

    async def delete_article(self, article: Article) -> None:
        await self.session.delete(article)
        await self.session.flush()

    async def increment_view_count(self, article_id: uuid.UUID) -> None:
        await self.session.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(view_count=Article.view_count + 1)
        )

    async def clear_tracked_sources(self) -> int:
        result = await self.session.execute(delete(NewsSourceRecord))
        return result.rowcount or 0

    # --- Reads ---

    async def get_article(self, article_id: uuid.UUID) -> Article | None:
        return await self.session.get(Article, article_id)

    async def get_public_article_by_slug(self, slug: str) -> Article | None:
        result = await self.session.execute(
            select(Article).where(Article.slug == slug, Article.publicly_visible())
        )
        return result.scalars().first()

    async def list_public_articles(
        self,
        *,
        category: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Article]:
        query = select(Article).where(Article.publicly_visible())
        if category and category != "all":
            query = query.where(Article.category == category)
        query = query.order_by(Article.published_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def search_public_articles(self, q: str, *, limit: int = 20) -> list[Article]:
        pattern = f"%{_escape_like(q)}%"
        result = await self.session.execute(
            select(Article)
            .where(
                Article.publicly_visible(),
                or_(
                    Article.title.ilike(pattern, escape="\\"),
                    Article.content.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(Article.published_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_pending(self, *, limit: int = 100) -> list[Article]:
        result = await self.session.execute(
            select(Article)
            .where(Article.approval_status == "pending")
            .order_by(Article.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_all(self, *, limit: int = 100, offset: int = 0) -> list[Article]:
        result = await self.session.execute(
            select(Article).order_by(Article.created_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def list_by_author(self, user_id: uuid.UUID, *, limit: int = 100) -> list[Article]:
        result = await self.session.execute(
            select(Article)
            .where(Article.author_id == user_id)
            .order_by(Article.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # --- Aggregates ---

    async def adjust_user_article_count(self, user_id: uuid.UUID, delta: int) -> None:
        await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(article_count=func.greatest(User.article_count + delta, 0))
        )

    async def refresh_user_stats(self, user_id: uuid.UUID) -> None:
        """Recount the user's cached article_count and total_views from articles."""
        result = await self.session.execute(
            select(
                func.count(Article.id),
                func.coalesce(func.sum(Article.view_count), 0),
            ).where(Article.author_id == user_id)
        )
        article_count, total_views = result.one()
        await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(article_count=int(article_count or 0), total_views=int(total_views or 0))
        )

    async def status_counts(self) -> dict[str, Any]:
        total = (await self.session.execute(select(func.count(Article.id)))).scalar() or 0
        published = (
            await self.session.execute(
                select(func.count(Article.id)).where(Article.publicly_visible())
            )
        ).scalar() or 0
        pending = (
            await self.session.execute(
                select(func.count(Article.id)).where(Article.approval_status == "pending")
            )
        ).scalar() or 0
        rejected = (
            await self.session.execute(
                select(func.count(Article.id)).where(Article.approval_status == "rejected")
            )
        ).scalar() or 0
        views = (
            await self.session.execute(select(func.coalesce(func.sum(Article.view_count), 0)))
        ).scalar() or 0
        users = (await self.session.execute(select(func.count(User.id)))).scalar() or 0
        return {
            "total_articles": int(total),
            "published_articles": int(published),
            "pending_review": int(pending),
            "rejected_articles": int(rejected),
            "total_views": int(views),
            "total_users": int(users),
        }
