"""Database engine, sessions and shared model mixins."""

from .models import TimestampMixin
from .session import Base, async_session, create_tables, get_engine, get_session_factory

__all__ = ["Base", "TimestampMixin", "async_session", "create_tables", "get_engine", "get_session_factory"]
