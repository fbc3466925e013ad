"""
Database module - SQLAlchemy access layer for the persistent store.

This module handles:
- Database connection management
- ORM models for conversations and messages
- Table creation
"""
from chatrelay.database.connection import DatabaseConnection, get_database, reset_database
from chatrelay.database.models import Base, ConversationRecord, MessageRecord
from chatrelay.database.init_db import init_conversation_tables, drop_conversation_tables

__all__ = [
    "DatabaseConnection",
    "get_database",
    "reset_database",
    "Base",
    "ConversationRecord",
    "MessageRecord",
    "init_conversation_tables",
    "drop_conversation_tables",
]
