"""Add expression index for the title-prefix duplicate check.

Revision ID: 005_title_prefix_index
Revises: 004_user_sessions
Create Date: 2026-10-18
"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "005_title_prefix_index"
down_revision: str | None = "004_user_sessions"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_index(
        "idx_articles_title_prefix",
        "articles",
        [sa.text("substr(title, 1, 40)")],
    )


def downgrade() -> None:
    op.drop_index("idx_articles_title_prefix", table_name="articles")
