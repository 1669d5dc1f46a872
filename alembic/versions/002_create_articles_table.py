"""Create articles table.

Revision ID: 002_articles
Revises: 001_users
Create Date: 2026-10-18
"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

revision: str = "002_articles"
down_revision: str | None = "001_users"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "articles",
        sa.Column("id", UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False, unique=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=False, server_default=sa.text("'mobile-news'")),
        sa.Column("featured_image", sa.Text(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("author_name", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("approval_status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("is_manual", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "author_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("approved_by", UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('draft','published')", name="ck_article_status"),
        sa.CheckConstraint(
            "approval_status IN ('pending','approved','rejected')",
            name="ck_article_approval_status",
        ),
    )
    op.create_index("idx_articles_source_url", "articles", ["source_url"])
    op.create_index("idx_articles_title", "articles", ["title"])
    op.create_index(
        "idx_articles_public", "articles", ["status", "approval_status", "published_at"]
    )
    op.create_index("idx_articles_author", "articles", ["author_id"])


def downgrade() -> None:
    op.drop_index("idx_articles_author", table_name="articles")
    op.drop_index("idx_articles_public", table_name="articles")
    op.drop_index("idx_articles_title", table_name="articles")
    op.drop_index("idx_articles_source_url", table_name="articles")
    op.drop_table("articles")
