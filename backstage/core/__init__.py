"""Core module for configuration and utilities."""

from backstage.core.config import settings
from backstage.core.database import Base, async_session_maker, get_db

__all__ = [
    "settings",
    "Base",
    "async_session_maker",
    "get_db",
]
