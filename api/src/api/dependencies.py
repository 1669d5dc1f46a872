"""FastAPI dependency injection."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from phoneverse.config import get_settings
from phoneverse.database import get_session_factory
from phoneverse.errors import AuthorizationError, InvalidSessionError
from phoneverse.models import User
from phoneverse.services.article_repository import ArticleRepository
from phoneverse.services.publisher import ArticlePublisher, build_publisher

from api.services.auth_service import verify_session_token


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _extract_bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        token = auth[7:].strip()
        return token or None
    return None


def _extract_cookie_token(request: Request, cookie_name: str) -> str | None:
    cookie_token = request.cookies.get(cookie_name, "").strip()
    return cookie_token or None


def extract_token(request: Request) -> str | None:
    """Token from ``Authorization: Bearer`` or the auth cookie."""
    cookie_name = get_settings().auth_cookie_name
    return _extract_bearer_token(request) or _extract_cookie_token(request, cookie_name)


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    raw_token = extract_token(request)
    if not raw_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
    try:
        return await verify_session_token(db, raw_token)
    except InvalidSessionError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message)


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError()
    return user


def get_repository(db: AsyncSession = Depends(get_db)) -> ArticleRepository:
    return ArticleRepository(db)


def get_publisher(
    repository: ArticleRepository = Depends(get_repository),
) -> ArticlePublisher:
    return build_publisher(repository)


def get_automation(request: Request):
    controller = getattr(request.app.state, "automation", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Automation is not available",
        )
    return controller
