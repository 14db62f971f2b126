"""Database initialization and session management.

Provides engine setup, session management, and verification utilities
for the TaskBook schema.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import event, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from .config import TaskBookSettings, get_settings
from .schemas.database import Group, Task, User, UserGroup


logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_taskbook_engine(settings: TaskBookSettings | None = None) -> Engine:
    """Create an engine for the configured store.

    Args:
        settings: Settings to use; defaults to the cached global settings

    Returns:
        SQLAlchemy Engine with SQLite foreign keys enforced when enabled

    """
    settings = settings or get_settings()
    engine = create_engine(settings.database.url, **settings.get_engine_options())

    if settings.database.is_sqlite and settings.database.sqlite_foreign_keys:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    logger.debug(f"Created engine for {engine.url.render_as_string(hide_password=True)}")
    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Get the process-wide engine built from global settings."""
    return create_taskbook_engine()


def create_db_and_tables(engine: Engine | None = None) -> None:
    """Create database and all tables.

    Safe to call multiple times - only creates tables that don't exist.
    """
    engine = engine or get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info(f"Database initialized at: {engine.url.render_as_string(hide_password=True)}")


def get_sync_session(engine: Engine | None = None) -> Session:
    """Get a synchronous database session.

    Returns:
        SQLModel Session for database operations

    """
    return Session(engine or get_engine())


@contextmanager
def get_session_context(engine: Engine | None = None) -> Generator[Session, None, None]:
    """Context manager for database sessions with automatic cleanup.

    Usage:
        with get_session_context() as session:
            service = TaskBookService(session)

    Raises:
        Exception: If there is an error during session operations

    """
    session = Session(engine or get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_database(engine: Engine | None = None) -> None:
    """Initialize the database with tables and basic setup.

    This is the main entry point for database initialization.
    """
    logger.info("Initializing TaskBook database...")

    create_db_and_tables(engine)

    with get_session_context(engine) as session:
        group_count = session.exec(select(func.count()).select_from(Group)).one()
        logger.info(f"Database ready. Current group count: {group_count}")


def verify_database(engine: Engine | None = None) -> dict[str, int] | None:
    """Verify database integrity and schema.

    Returns:
        Row counts per table if the database is healthy, None otherwise

    """
    try:
        with get_session_context(engine) as session:
            counts = {
                entity.__tablename__: session.exec(
                    select(func.count()).select_from(entity)
                ).one()
                for entity in (User, Group, UserGroup, Task)
            }
    except SQLAlchemyError as e:
        logger.error(f"Database verification failed: {e}")
        return None

    logger.info(f"Database verification successful: {counts}")
    return counts


__all__ = [
    "create_db_and_tables",
    "create_taskbook_engine",
    "get_engine",
    "get_session_context",
    "get_sync_session",
    "init_database",
    "verify_database",
]
