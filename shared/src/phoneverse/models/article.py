"""Article model - automated and user-submitted posts."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ColumnElement,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    and_,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from phoneverse.models.base import Base

if TYPE_CHECKING:
    from phoneverse.models.user import User

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'mobile-news'")
    )
    featured_image: Mapped[str | None] = mapped_column(Text)
    source_url: Mapped[str | None] = mapped_column(Text)
    author_name: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'draft'"))
    approval_status: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'pending'")
    )
    is_manual: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("FALSE"))
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    word_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    author_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    author: Mapped[User | None] = relationship(back_populates="articles", lazy="noload")

    __table_args__ = (
        CheckConstraint("status IN ('draft','published')", name="ck_article_status"),
        CheckConstraint(
            "approval_status IN ('pending','approved','rejected')",
            name="ck_article_approval_status",
        ),
        Index("idx_articles_source_url", "source_url"),
        Index("idx_articles_title", "title"),
        # Serves the default 40-character duplicate prefix check.
        Index("idx_articles_title_prefix", text("substr(title, 1, 40)")),
        Index("idx_articles_public", "status", "approval_status", "published_at"),
        Index("idx_articles_author", "author_id"),
    )

    @classmethod
    def publicly_visible(cls) -> ColumnElement[bool]:
        """The one predicate every public query filters on."""
        return and_(cls.status == STATUS_PUBLISHED, cls.approval_status == APPROVAL_APPROVED)

    @property
    def is_public(self) -> bool:
        return self.status == STATUS_PUBLISHED and self.approval_status == APPROVAL_APPROVED
