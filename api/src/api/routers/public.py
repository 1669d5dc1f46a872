"""Public article endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from phoneverse.services.article_repository import ArticleRepository

from api.dependencies import get_repository
from api.services.article_payloads import article_detail, article_summary

router = APIRouter()


@router.get("/articles")
async def list_articles(
    category: str | None = Query(default=None, max_length=64),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    repo: ArticleRepository = Depends(get_repository),
):
    articles = await repo.list_public_articles(category=category, limit=limit, offset=offset)
    return [article_summary(a) for a in articles]


@router.get("/articles/{slug}")
async def get_article(slug: str, repo: ArticleRepository = Depends(get_repository)):
    article = await repo.get_public_article_by_slug(slug)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    await repo.increment_view_count(article.id)
    payload = article_detail(article)
    payload["view_count"] = (article.view_count or 0) + 1
    return payload


@router.get("/category/{category}")
async def list_category(
    category: str,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    repo: ArticleRepository = Depends(get_repository),
):
    articles = await repo.list_public_articles(category=category, limit=limit, offset=offset)
    return [article_summary(a) for a in articles]


@router.get("/search")
async def search_articles(
    q: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=20, ge=1, le=100),
    repo: ArticleRepository = Depends(get_repository),
):
    query = (q or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="Search query required")
    articles = await repo.search_public_articles(query, limit=limit)
    return [article_summary(a) for a in articles]
