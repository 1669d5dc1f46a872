"""Tests for admin moderation, user management and guards."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from unittest.mock import MagicMock

from api.dependencies import get_current_user, require_admin
from httpx import AsyncClient
from phoneverse.models import Article, User

ADMIN_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")


def _user(**overrides) -> User:
    fields = {
        "id": uuid.uuid4(),
        "username": "writer",
        "email": "writer@test.local",
        "password_hash": "hashed",
        "role": "user",
        "status": "active",
        "article_count": 2,
        "total_views": 10,
        "created_at": datetime(2026, 1, 1, tzinfo=UTC),
    }
    fields.update(overrides)
    return User(**fields)


def _article(**overrides) -> Article:
    fields = {
        "id": uuid.uuid4(),
        "title": "Galaxy S30 Review",
        "slug": "galaxy-s30-review-lz3abc",
        "content": "<p>Body</p>",
        "category": "reviews",
        "status": "draft",
        "approval_status": "pending",
        "is_manual": True,
        "view_count": 0,
        "word_count": 1,
        "created_at": datetime(2026, 5, 1, tzinfo=UTC),
    }
    fields.update(overrides)
    return Article(**fields)


# ──────────────────────────────────────────────
# Guards
# ──────────────────────────────────────────────


class TestGuards:
    async def test_admin_routes_require_auth(self, unauthenticated_client: AsyncClient):
        for path in ("/api/admin/stats", "/api/admin/pending-review", "/api/admin/users"):
            resp = await unauthenticated_client.get(path)
            assert resp.status_code == 401, path

    async def test_non_admin_forbidden(self, app, client: AsyncClient):
        app.dependency_overrides.pop(require_admin)
        app.dependency_overrides[get_current_user] = lambda: _user()
        resp = await client.get("/api/admin/stats")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Admin access required"

    async def test_admin_passes_real_guard(self, app, client: AsyncClient):
        app.dependency_overrides.pop(require_admin)
        app.dependency_overrides[get_current_user] = lambda: _user(role="admin")
        resp = await client.get("/api/admin/stats")
        assert resp.status_code == 200


# ──────────────────────────────────────────────
# Stats
# ──────────────────────────────────────────────


class TestStats:
    async def test_stats_shape(self, client: AsyncClient):
        resp = await client.get("/api/admin/stats")
        assert resp.status_code == 200
        assert resp.json() == {
            "total_articles": 0,
            "published_articles": 0,
            "pending_review": 0,
            "rejected_articles": 0,
            "total_views": 0,
            "total_users": 0,
        }

    async def test_stats_counts(self, client: AsyncClient, mock_db):
        result = MagicMock()
        result.scalar.side_effect = [7, 4, 2, 1, 99, 3]
        mock_db.execute.return_value = result
        resp = await client.get("/api/admin/stats")
        body = resp.json()
        assert body["total_articles"] == 7
        assert body["published_articles"] == 4
        assert body["pending_review"] == 2
        assert body["rejected_articles"] == 1
        assert body["total_views"] == 99
        assert body["total_users"] == 3


# ──────────────────────────────────────────────
# Moderation
# ──────────────────────────────────────────────


class TestModeration:
    async def test_pending_review_lists_articles(self, client: AsyncClient, mock_db):
        result = MagicMock()
        result.scalars.return_value.all.return_value = [_article()]
        mock_db.execute.return_value = result
        resp = await client.get("/api/admin/pending-review")
        assert resp.status_code == 200
        body = resp.json()
        assert body[0]["approval_status"] == "pending"
        assert body[0]["is_manual"] is True

    async def test_approve_missing_article(self, client: AsyncClient):
        resp = await client.post(f"/api/admin/approve/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Article not found"

    async def test_approve_invalid_id(self, client: AsyncClient):
        resp = await client.post("/api/admin/approve/not-a-uuid")
        assert resp.status_code == 422

    async def test_approve_publishes(self, client: AsyncClient, mock_db):
        article = _article()
        mock_db.get.return_value = article
        resp = await client.post(f"/api/admin/approve/{article.id}")
        assert resp.status_code == 200
        assert resp.json()["slug"] == article.slug
        assert article.status == "published"
        assert article.approval_status == "approved"
        assert article.approved_by == ADMIN_ID
        assert article.published_at is not None

    async def test_approve_refreshes_author_stats(self, client: AsyncClient, mock_db):
        article = _article(author_id=uuid.uuid4())
        mock_db.get.return_value = article
        result = MagicMock()
        result.one.return_value = (3, 42)
        mock_db.execute.return_value = result
        resp = await client.post(f"/api/admin/approve/{article.id}")
        assert resp.status_code == 200
        # Recount SELECT plus the users UPDATE.
        assert mock_db.execute.await_count == 2

    async def test_reject_with_reason(self, client: AsyncClient, mock_db):
        article = _article()
        mock_db.get.return_value = article
        resp = await client.post(f"/api/admin/reject/{article.id}", json={"reason": "Spam"})
        assert resp.status_code == 200
        assert article.approval_status == "rejected"
        assert article.status == "draft"
        assert article.rejection_reason == "Spam"

    async def test_reject_default_reason(self, client: AsyncClient, mock_db):
        article = _article()
        mock_db.get.return_value = article
        resp = await client.post(f"/api/admin/reject/{article.id}")
        assert resp.status_code == 200
        assert article.rejection_reason == "Does not meet quality standards"

    async def test_delete_article_adjusts_author_count(self, client: AsyncClient, mock_db):
        article = _article(author_id=uuid.uuid4())
        mock_db.get.return_value = article
        resp = await client.delete(f"/api/admin/articles/{article.id}")
        assert resp.status_code == 200
        mock_db.delete.assert_awaited_once_with(article)
        assert mock_db.execute.await_count == 1

    async def test_delete_missing_article(self, client: AsyncClient):
        resp = await client.delete(f"/api/admin/articles/{uuid.uuid4()}")
        assert resp.status_code == 404


# ──────────────────────────────────────────────
# User management
# ──────────────────────────────────────────────


class TestUserManagement:
    async def test_list_users(self, client: AsyncClient, mock_db):
        result = MagicMock()
        result.scalars.return_value.all.return_value = [_user()]
        mock_db.execute.return_value = result
        resp = await client.get("/api/admin/users")
        assert resp.status_code == 200
        assert resp.json()[0]["username"] == "writer"

    async def test_get_missing_user(self, client: AsyncClient):
        resp = await client.get(f"/api/admin/users/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "User not found"

    async def test_cannot_suspend_self(self, client: AsyncClient):
        resp = await client.put(f"/api/admin/users/{ADMIN_ID}/status", json={"status": "suspended"})
        assert resp.status_code == 400

    async def test_invalid_status(self, client: AsyncClient):
        resp = await client.put(f"/api/admin/users/{uuid.uuid4()}/status", json={"status": "banned"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid status"

    async def test_suspend_user_revokes_sessions(self, client: AsyncClient, mock_db):
        user = _user()
        mock_db.get.return_value = user
        resp = await client.put(f"/api/admin/users/{user.id}/status", json={"status": "suspended"})
        assert resp.status_code == 200
        assert resp.json()["user"]["status"] == "suspended"
        assert user.status == "suspended"
        assert mock_db.execute.await_count == 1

    async def test_promote_user(self, client: AsyncClient, mock_db):
        user = _user()
        mock_db.get.return_value = user
        resp = await client.put(f"/api/admin/users/{user.id}/role", json={"role": "admin"})
        assert resp.status_code == 200
        assert user.role == "admin"

    async def test_cannot_demote_self(self, client: AsyncClient):
        resp = await client.put(f"/api/admin/users/{ADMIN_ID}/role", json={"role": "user"})
        assert resp.status_code == 400

    async def test_cannot_delete_self(self, client: AsyncClient):
        resp = await client.delete(f"/api/admin/users/{ADMIN_ID}")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "You cannot delete your own account"

    async def test_delete_user(self, client: AsyncClient, mock_db):
        user = _user()
        mock_db.get.return_value = user
        resp = await client.delete(f"/api/admin/users/{user.id}")
        assert resp.status_code == 200
        mock_db.delete.assert_awaited_once_with(user)
