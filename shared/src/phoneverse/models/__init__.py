"""SQLAlchemy ORM models for PhoneVerse."""

from phoneverse.models.base import Base
from phoneverse.models.article import Article
from phoneverse.models.news_source import NewsSourceRecord
from phoneverse.models.user import User
from phoneverse.models.user_session import UserSession

__all__ = [
    "Base",
    "Article",
    "NewsSourceRecord",
    "User",
    "UserSession",
]
