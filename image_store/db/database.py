"""Database configuration and session management."""

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from image_store.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for the given URL.

    For file-based SQLite URLs the parent directory of the database file is
    created if it does not exist.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Log SQL statements.

    Returns:
        Engine: The configured engine.
    """
    if database_url.startswith("sqlite"):
        db_path = database_url.replace("sqlite:///", "").replace("sqlite://", "")
        in_memory = db_path in ("", ":memory:")
        if not in_memory:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        # Sessions are used from the request thread pool; an in-memory
        # database must share one connection or each thread sees its own
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
            poolclass=StaticPool if in_memory else None,
        )

    return create_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to an engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine
    )


def init_db(engine: Engine) -> None:
    """Initialize a database by creating all tables.

    This should be called on application startup.
    """
    logger.info(f"Creating database tables at {engine.url}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def drop_db(engine: Engine) -> None:
    """Drop all database tables.

    WARNING: This will delete all data!
    This should only be used for testing or development.
    """
    logger.warning(f"Dropping all database tables at {engine.url}")
    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")
