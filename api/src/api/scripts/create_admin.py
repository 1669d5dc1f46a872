"""Create an admin account, or promote an existing one."""

from __future__ import annotations

import argparse
import asyncio
import getpass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from phoneverse.database import close_engine, get_session_factory
from phoneverse.models import User
from phoneverse.models.user import ROLE_ADMIN, STATUS_ACTIVE

from api.middleware.auth import hash_password
from api.services.auth_service import register_user


async def ensure_admin(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    password: str | None,
    full_name: str | None = None,
) -> tuple[User, bool]:
    """Return ``(user, created)``; an existing match is promoted and reactivated."""
    result = await db.execute(
        select(User).where(or_(User.username == username, User.email == email.strip().lower()))
    )
    user = result.scalars().first()
    if user is None:
        if not password:
            raise ValueError("A password is required to create a new admin")
        user = await register_user(db, username, email, password, full_name)
        created = True
    else:
        if password:
            user.password_hash = hash_password(password)
        created = False
    user.role = ROLE_ADMIN
    user.status = STATUS_ACTIVE
    await db.flush()
    return user, created


async def create_admin(
    *, username: str, email: str, password: str | None, full_name: str | None
) -> tuple[User, bool]:
    factory = get_session_factory()
    try:
        async with factory() as db:
            user, created = await ensure_admin(
                db, username=username, email=email, password=password, full_name=full_name
            )
            await db.commit()
    finally:
        await close_engine()
    return user, created


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create or promote a PhoneVerse admin account.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument(
        "--password",
        help="Password for the account (prompted when omitted for a new account).",
    )
    parser.add_argument("--full-name", default="Administrator")
    return parser


def main() -> None:
    args = _parser().parse_args()
    password = args.password
    if password is None:
        password = getpass.getpass("Admin password (blank keeps existing): ") or None
    user, created = asyncio.run(
        create_admin(
            username=args.username,
            email=args.email,
            password=password,
            full_name=args.full_name,
        )
    )
    print(
        "create-admin:",
        f"username={user.username}",
        f"email={user.email}",
        "created" if created else "promoted",
    )


if __name__ == "__main__":
    main()
