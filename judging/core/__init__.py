"""Core configuration and utilities"""
from judging.core.config import settings
from judging.core.database import get_db, engine, Base

__all__ = [
    "settings",
    "get_db",
    "engine",
    "Base",
]
