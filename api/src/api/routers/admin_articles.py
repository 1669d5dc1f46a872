"""Admin article moderation."""
from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from phoneverse.models import User
from phoneverse.services.article_repository import ArticleRepository
from phoneverse.services.publisher import ArticlePublisher
from api.dependencies import get_publisher, get_repository, require_admin
from api.services.article_payloads import article_admin

router = APIRouter()

class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)

@router.get("/pending-review")
async def pending_review(
    limit: int = Query(default=100, ge=1, le=500),
    repo: ArticleRepository = Depends(get_repository),
    admin: User = Depends(require_admin),
):
    return [article_admin(a) for a in await repo.list_pending(limit=limit)]

@router.get("/all")
async def all_articles(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    repo: ArticleRepository = Depends(get_repository),
    admin: User = Depends(require_admin),
):
    return [article_admin(a) for a in await repo.list_all(limit=limit, offset=offset)]

@router.post("/approve/{article_id}")
async def approve_article(
    article_id: UUID,
    publisher: ArticlePublisher = Depends(get_publisher),
    admin: User = Depends(require_admin),
):
    article = await publisher.approve(article_id, admin.id)
    return {"success": True, "message": "Article approved and published", "slug": article.slug}

@router.post("/reject/{article_id}")
async def reject_article(
    article_id: UUID,
    req: RejectRequest | None = None,
    publisher: ArticlePublisher = Depends(get_publisher),
    admin: User = Depends(require_admin),
):
    await publisher.reject(article_id, req.reason if req else None)
    return {"success": True, "message": "Article rejected"}

@router.delete("/articles/{article_id}")
async def delete_article(
    article_id: UUID,
    publisher: ArticlePublisher = Depends(get_publisher),
    admin: User = Depends(require_admin),
):
    await publisher.delete(article_id)
    return {"success": True, "message": "Article deleted"}
