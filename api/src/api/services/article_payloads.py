"""JSON shapes for articles returned by the API."""

from __future__ import annotations

from phoneverse.models import Article


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def article_summary(article: Article) -> dict:
    return {
        "id": str(article.id),
        "title": article.title,
        "slug": article.slug,
        "excerpt": article.excerpt,
        "category": article.category,
        "featured_image": article.featured_image,
        "author_name": article.author_name,
        "view_count": article.view_count,
        "word_count": article.word_count,
        "published_at": _iso(article.published_at),
        "created_at": _iso(article.created_at),
    }


def article_detail(article: Article) -> dict:
    payload = article_summary(article)
    payload["content"] = article.content
    payload["source_url"] = article.source_url
    return payload


def article_admin(article: Article) -> dict:
    payload = article_detail(article)
    payload.update(
        {
            "status": article.status,
            "approval_status": article.approval_status,
            "is_manual": article.is_manual,
            "author_id": str(article.author_id) if article.author_id else None,
            "approved_by": str(article.approved_by) if article.approved_by else None,
            "approved_at": _iso(article.approved_at),
            "rejection_reason": article.rejection_reason,
        }
    )
    return payload
