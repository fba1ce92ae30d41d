"""Database utilities - engine and session."""

from src.app.core.db.engine import dispose_engine, get_engine
from src.app.core.db.session import create_session_factory, get_session

__all__ = [
    "create_session_factory",
    "dispose_engine",
    "get_engine",
    "get_session",
]
