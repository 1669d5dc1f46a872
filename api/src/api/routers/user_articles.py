"""User article submission endpoints."""

from __future__ import annotations

import html
import logging
import re
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile

from phoneverse.config import get_settings
from phoneverse.models import User
from phoneverse.schemas.articles import ArticleDraft
from phoneverse.services.article_repository import ArticleRepository
from phoneverse.services.publisher import ArticlePublisher
from pipeline.images import ImageResolver

from api.dependencies import get_current_user, get_publisher, get_repository
from api.services.article_payloads import article_admin

logger = logging.getLogger(__name__)
router = APIRouter()

CATEGORIES = {"mobile-news", "reviews", "android-updates", "iphone-news", "comparisons", "guides"}
IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}
UPLOAD_URL_PREFIX = "/images/uploads"


def _to_html(content: str) -> str:
    if "<p>" in content:
        return content
    blocks = [b.strip() for b in re.split(r"\n\s*\n", content) if b.strip()]
    return "\n".join(f"<p>{html.escape(b)}</p>" for b in blocks)


async def _read_upload(image: UploadFile) -> tuple[str, bytes]:
    """Validate an upload and pick its stored filename; nothing is written yet."""
    settings = get_settings()
    extension = IMAGE_EXTENSIONS.get((image.content_type or "").lower())
    if extension is None:
        raise HTTPException(status_code=400, detail="Image must be JPEG, PNG, WebP or GIF")
    data = await image.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=400, detail="Image is too large")
    if not data:
        raise HTTPException(status_code=400, detail="Image is empty")
    return f"{uuid.uuid4().hex}{extension}", data


def _write_upload(filename: str, data: bytes) -> None:
    upload_dir = Path(get_settings().upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    (upload_dir / filename).write_bytes(data)
    logger.info("Saved upload %s (%d bytes)", filename, len(data))


@router.post("/submit-article", status_code=201)
async def submit_article(
    response: Response,
    title: str = Form(default=""),
    content: str = Form(default=""),
    category: str = Form(default="mobile-news"),
    excerpt: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    publisher: ArticlePublisher = Depends(get_publisher),
    user: User = Depends(get_current_user),
):
    title = title.strip()
    content = content.strip()
    if not title or not content:
        raise HTTPException(status_code=400, detail="Title and content are required")
    if len(title) > 300:
        raise HTTPException(status_code=400, detail="Title is too long")
    if category not in CATEGORIES:
        raise HTTPException(status_code=400, detail="Unknown category")

    upload: tuple[str, bytes] | None = None
    if image is not None and image.filename:
        upload = await _read_upload(image)
        featured_image = f"{UPLOAD_URL_PREFIX}/{upload[0]}"
    else:
        featured_image = ImageResolver(get_settings().image_url_template).resolve(title, category)

    body = _to_html(content)
    draft = ArticleDraft(
        title=title,
        content=body,
        excerpt=(excerpt or "").strip()[:300] or content[:155],
        category=category,
        featured_image=featured_image,
        word_count=len(re.sub(r"<[^>]+>", " ", body).split()),
    )
    article_id = await publisher.publish(
        draft,
        is_manual=True,
        user_id=user.id,
        author_name=user.full_name or user.username,
    )
    if article_id is None:
        response.status_code = 200
        return {"success": False, "message": "A similar article already exists"}
    if upload is not None:
        _write_upload(*upload)
    return {
        "success": True,
        "message": (
            "Article published" if publisher.auto_approve_manual else "Article submitted for review"
        ),
        "article_id": str(article_id),
    }


@router.get("/my-articles")
async def my_articles(
    repo: ArticleRepository = Depends(get_repository),
    user: User = Depends(get_current_user),
):
    articles = await repo.list_by_author(user.id)
    return [article_admin(a) for a in articles]
