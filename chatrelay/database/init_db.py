"""
Database Initialization - Create tables for the persistent conversation store.
"""
from typing import Optional

from chatrelay.core.logging_config import get_logger
from chatrelay.database.connection import DatabaseConnection, get_database
from chatrelay.database.models import Base

logger = get_logger(__name__)


def init_conversation_tables(db: Optional[DatabaseConnection] = None) -> bool:
    """
    Create conversation tables if they don't exist.

    Called during application startup when persistent memory is enabled.

    Returns:
        True if tables were created successfully
    """
    db = db or get_database()
    try:
        Base.metadata.create_all(db.engine)
    except Exception as e:
        logger.error(f"Failed to initialize conversation tables: {e}")
        raise

    logger.info("Conversation tables initialized successfully")
    return True


def drop_conversation_tables(db: Optional[DatabaseConnection] = None) -> bool:
    """
    Drop conversation tables (use with caution!).

    Returns:
        True if tables were dropped successfully
    """
    db = db or get_database()
    try:
        Base.metadata.drop_all(db.engine)
    except Exception as e:
        logger.error(f"Failed to drop conversation tables: {e}")
        raise

    logger.warning("Conversation tables dropped")
    return True


if __name__ == "__main__":
    init_conversation_tables()
