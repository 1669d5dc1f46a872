"""User account model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Integer, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from phoneverse.models.base import Base

if TYPE_CHECKING:
    from phoneverse.models.article import Article
    from phoneverse.models.user_session import UserSession

ROLE_USER = "user"
ROLE_ADMIN = "admin"
STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")
    )
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[str | None] = mapped_column(Text)
    bio: Mapped[str | None] = mapped_column(Text)
    role: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'user'"))
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'active'"))
    # Cached aggregates, refreshed from the articles table on approval.
    article_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_views: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    articles: Mapped[list[Article]] = relationship(back_populates="author", lazy="noload")
    sessions: Mapped[list[UserSession]] = relationship(
        back_populates="user", lazy="noload", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("role IN ('user','admin')", name="ck_user_role"),
        CheckConstraint("status IN ('active','suspended')", name="ck_user_status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
