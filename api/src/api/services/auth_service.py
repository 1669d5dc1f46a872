"""User registration, login and server-side session validation.

A login issues a signed JWT and records a ``user_sessions`` row keyed by the
token's SHA-256 digest. A token is only accepted while both are valid, so a
logout (row deleted) revokes the token before its signature expires.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from phoneverse.errors import (
    AccountSuspendedError,
    DuplicateUserError,
    InvalidCredentialsError,
    InvalidSessionError,
    ValidationError,
)
from phoneverse.models import User, UserSession
from phoneverse.models.user import ROLE_USER, STATUS_ACTIVE

from api.middleware.auth import (
    create_access_token,
    decode_access_token,
    hash_password,
    token_digest,
    verify_password,
)

logger = logging.getLogger(__name__)

USERNAME_MIN = 3
USERNAME_MAX = 50
PASSWORD_MIN = 6

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not _EMAIL_RE.match(normalized):
        raise ValidationError("Invalid email address")
    return normalized


def user_payload(user: User) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
        "bio": user.bio,
        "role": user.role,
        "status": user.status,
        "article_count": user.article_count,
        "total_views": user.total_views,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "last_login": user.last_login.isoformat() if user.last_login else None,
    }


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    full_name: str | None = None,
) -> User:
    username = (username or "").strip()
    if not username or not email or not password:
        raise ValidationError("Username, email and password are required")
    if not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        raise ValidationError(
            f"Username must be {USERNAME_MIN}-{USERNAME_MAX} characters"
        )
    email = normalize_email(email)
    if len(password) < PASSWORD_MIN:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN} characters")

    existing = await db.execute(
        select(User.id).where(or_(User.username == username, User.email == email)).limit(1)
    )
    if existing.scalars().first() is not None:
        raise DuplicateUserError()

    user = User(
        id=uuid.uuid4(),
        username=username,
        email=email,
        password_hash=hash_password(password),
        full_name=(full_name or "").strip() or None,
        role=ROLE_USER,
        status=STATUS_ACTIVE,
        article_count=0,
        total_views=0,
        created_at=_utcnow(),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateUserError() from exc
    logger.info("Registered user %s", username)
    return user


async def login_user(
    db: AsyncSession,
    identifier: str,
    password: str,
    *,
    now: datetime | None = None,
) -> tuple[User, str, datetime]:
    """Return ``(user, token, expires_at)`` for a username-or-email login."""
    identifier = (identifier or "").strip()
    if not identifier or not password:
        raise ValidationError("Username and password are required")

    result = await db.execute(
        select(User)
        .where(or_(User.username == identifier, User.email == identifier.lower()))
        .limit(1)
    )
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    if user.status != STATUS_ACTIVE:
        raise AccountSuspendedError()

    now = now or _utcnow()
    token, expires_at = create_access_token(str(user.id), user.username, user.role, now=now)
    db.add(
        UserSession(
            id=uuid.uuid4(),
            user_id=user.id,
            session_token=token_digest(token),
            expires_at=expires_at,
            created_at=now,
        )
    )
    user.last_login = now
    await db.flush()
    logger.info("User %s logged in", user.username)
    return user, token, expires_at


async def verify_session_token(
    db: AsyncSession,
    token: str,
    *,
    now: datetime | None = None,
) -> User:
    payload = decode_access_token(token) if token else None
    if payload is None:
        raise InvalidSessionError()

    result = await db.execute(
        select(UserSession).where(UserSession.session_token == token_digest(token))
    )
    session_row = result.scalars().first()
    if session_row is None:
        raise InvalidSessionError()

    now = now or _utcnow()
    if session_row.expires_at <= now:
        raise InvalidSessionError()

    if str(session_row.user_id) != str(payload.get("sub")):
        raise InvalidSessionError()

    user = await db.get(User, session_row.user_id)
    if user is None or not user.is_active:
        raise InvalidSessionError()
    return user


async def logout_session(db: AsyncSession, token: str | None) -> None:
    if not token:
        return
    await db.execute(delete(UserSession).where(UserSession.session_token == token_digest(token)))


async def sweep_expired_sessions(db: AsyncSession, *, now: datetime | None = None) -> int:
    cutoff = now or _utcnow()
    result = await db.execute(delete(UserSession).where(UserSession.expires_at <= cutoff))
    removed = result.rowcount or 0
    if removed:
        logger.info("Swept %d expired sessions", removed)
    return removed


async def update_profile(
    db: AsyncSession,
    user: User,
    full_name: str | None = None,
    bio: str | None = None,
) -> User:
    if full_name is not None:
        user.full_name = full_name.strip() or None
    if bio is not None:
        user.bio = bio.strip() or None
    await db.flush()
    return user
