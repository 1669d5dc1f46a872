"""Pydantic schemas for the ingestion and publishing flow."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class NewsItem(BaseModel):
    """A normalized feed entry, before rewriting."""

    original_title: str
    original_content: str = ""
    source_url: str
    published_at: datetime
    category: str = "mobile-news"
    source_name: str = ""


class RewriteResult(BaseModel):
    """Output of a content rewriter."""

    title: str
    content: str
    excerpt: str | None = None
    word_count: int = 0


class ArticleDraft(BaseModel):
    """Everything the publisher needs to persist a new article."""

    title: str = Field(min_length=1)
    content: str
    excerpt: str | None = None
    category: str = "mobile-news"
    featured_image: str | None = None
    source_url: str | None = None
    word_count: int = 0
