"""
Database Connection Management.

This module handles the SQLAlchemy engine for the persistent conversation
store. It provides:
- Connection pooling (server databases) or a shared connection (SQLite memory)
- Session management with commit/rollback
"""
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chatrelay.core.config import get_settings
from chatrelay.core.logging_config import get_logger

logger = get_logger(__name__)


def _engine_kwargs(db_url: str) -> dict:
    """Pool settings per backend; SQLite does not take pool sizing."""
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    }


class DatabaseConnection:
    """
    Manages database connections and session lifecycle.

    Example:
        >>> db = DatabaseConnection("sqlite:///:memory:")
        >>> with db.get_session() as session:
        ...     session.add(record)
    """

    def __init__(self, connection_url: Optional[str] = None):
        """
        Initialize database engine.

        Args:
            connection_url: Optional connection URL. If not provided, uses settings.
        """
        db_url = connection_url or get_settings().database_url

        self.engine = create_engine(db_url, echo=False, **_engine_kwargs(db_url))

        if db_url.startswith("sqlite"):
            # Enforce ON DELETE CASCADE
            @event.listens_for(self.engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self._session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        logger.info(f"Database connection initialized: {db_url.split('@')[-1] if '@' in db_url else db_url}")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session with automatic cleanup.

        Transactions are rolled back on error, committed on success.

        Yields:
            SQLAlchemy Session object
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error, rolling back: {e}")
            raise
        finally:
            session.close()

    def close(self):
        """Close all connections in the pool."""
        self.engine.dispose()
        logger.info("Database connections closed")


# Module-level instance (singleton pattern)
_db_connection: Optional[DatabaseConnection] = None


def get_database() -> DatabaseConnection:
    """
    Get or create the database connection instance.

    Returns:
        DatabaseConnection singleton instance
    """
    global _db_connection
    if _db_connection is None:
        _db_connection = DatabaseConnection()
    return _db_connection


def reset_database() -> None:
    """Dispose and drop the singleton (for testing)."""
    global _db_connection
    if _db_connection is not None:
        _db_connection.close()
    _db_connection = None
