"""Database layer."""

from alpine_keys.db.session import close_db, create_engine, get_async_session, init_db

__all__ = ["close_db", "create_engine", "get_async_session", "init_db"]
