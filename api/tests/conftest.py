"""API test configuration."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from api.dependencies import get_db, require_admin
from api.main import create_app
from httpx import ASGITransport, AsyncClient

ADMIN_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")


class FakeAdminUser:
    """Minimal stand-in for an admin User row."""

    id = ADMIN_ID
    username = "testadmin"
    email = "admin@test.local"
    full_name = "Test Admin"
    role = "admin"
    status = "active"
    is_active = True
    is_admin = True


def _fake_admin():
    return FakeAdminUser()


@pytest.fixture
def automation():
    """Automation controller double placed on ``app.state``."""
    controller = MagicMock()
    controller.status.return_value = {
        "enabled": True,
        "running": False,
        "last_run": None,
        "total_runs": 0,
        "articles_processed": 0,
        "last_result": None,
        "max_articles_per_batch": 50,
        "max_publish_per_batch": 10,
    }
    controller.launch.return_value = True
    return controller


@pytest.fixture
def app(automation):
    a = create_app()
    # ASGITransport does not run the lifespan.
    a.state.automation = automation
    a.dependency_overrides[require_admin] = _fake_admin
    return a


@pytest.fixture
def mock_db():
    """Creates a mock AsyncSession with common patterns pre-configured."""
    session = AsyncMock()
    # AsyncSession.add() is synchronous; use MagicMock to avoid un-awaited coroutine warnings.
    session.add = MagicMock()
    # Default: execute returns empty result set
    empty_result = MagicMock()
    empty_result.scalars.return_value.all.return_value = []
    empty_result.scalars.return_value.first.return_value = None
    empty_result.scalar.return_value = 0
    empty_result.all.return_value = []
    empty_result.one.return_value = (0, 0)
    empty_result.rowcount = 0
    session.execute.return_value = empty_result
    # Default: get returns None
    session.get.return_value = None
    return session


@pytest.fixture
async def client(app, mock_db):
    async def _override_db():
        yield mock_db

    app.dependency_overrides[get_db] = _override_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def unauthenticated_client(mock_db, automation):
    """Client with NO auth override -- tests that endpoints require auth."""
    a = create_app()
    a.state.automation = automation

    async def _override_db():
        yield mock_db

    a.dependency_overrides[get_db] = _override_db
    transport = ASGITransport(app=a)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
