"""Database configuration and session management."""

from .database import create_db_engine, create_session_factory, drop_db, init_db

__all__ = ["create_db_engine", "create_session_factory", "init_db", "drop_db"]
