"""Tests for the create-admin script."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest
from api.scripts.create_admin import _parser, ensure_admin
from phoneverse.models import User


async def test_creates_new_admin(mock_db):
    with patch("api.services.auth_service.hash_password", return_value="hashed"):
        user, created = await ensure_admin(
            mock_db, username="root", email="Root@Test.Local", password="secret1"
        )
    assert created is True
    assert user.role == "admin"
    assert user.status == "active"
    assert user.email == "root@test.local"


async def test_promotes_existing_user(mock_db):
    existing = User(
        id=uuid.uuid4(),
        username="writer",
        email="writer@test.local",
        password_hash="old",
        role="user",
        status="suspended",
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
    )
    result = MagicMock()
    result.scalars.return_value.first.return_value = existing
    mock_db.execute.return_value = result

    user, created = await ensure_admin(
        mock_db, username="writer", email="writer@test.local", password=None
    )
    assert created is False
    assert user is existing
    assert user.role == "admin"
    assert user.status == "active"
    assert user.password_hash == "old"


async def test_new_admin_needs_password(mock_db):
    with pytest.raises(ValueError):
        await ensure_admin(mock_db, username="root", email="root@test.local", password=None)


def test_parser_defaults():
    args = _parser().parse_args(["--username", "root", "--email", "root@test.local"])
    assert args.password is None
    assert args.full_name == "Administrator"
