"""
Memory Package - Conversation history storage.

Two interchangeable ConversationStore backends:

## In-memory (default)
- Fast, process-local
- Lost on server restart
- Good for development/testing

## SQL-backed (MEMORY_PERSISTENT=true)
- Persists across restarts
- Searchable conversation history
- Good for production

Use `get_conversation_store()` to get the backend selected by configuration.

Example:
    >>> from chatrelay.memory import get_conversation_store
    >>> store = get_conversation_store()
    >>> conversation = store.get_or_create(owner_id="user-123")
    >>> store.append_message(conversation.id, "user", "Hello!")
"""
from typing import Optional

from chatrelay.core.config import Settings, get_settings
from chatrelay.core.logging_config import get_logger
from chatrelay.memory.base import UNSET, ConversationStore
from chatrelay.memory.conversation import DEFAULT_OWNER, ROLES, Conversation, Message
from chatrelay.memory.manager import (
    InMemoryConversationStore,
    get_memory_store,
    reset_memory_store,
)
from chatrelay.memory.persistent import (
    SQLConversationStore,
    get_sql_store,
    reset_sql_store,
)

logger = get_logger(__name__)

_tables_ready = False


def get_conversation_store(settings: Optional[Settings] = None) -> ConversationStore:
    """
    Get the conversation store selected by configuration.

    Returns:
        - SQLConversationStore if MEMORY_PERSISTENT=true (tables created on first use)
        - InMemoryConversationStore otherwise
    """
    global _tables_ready
    settings = settings or get_settings()

    if settings.memory_persistent:
        if not _tables_ready:
            from chatrelay.database.init_db import init_conversation_tables
            init_conversation_tables()
            _tables_ready = True
        return get_sql_store()

    return get_memory_store()


def reset_conversation_store() -> None:
    """Reset every store singleton (for testing)."""
    global _tables_ready
    _tables_ready = False
    reset_memory_store()
    reset_sql_store()


__all__ = [
    # Domain objects
    "Message",
    "Conversation",
    "ROLES",
    "DEFAULT_OWNER",
    "UNSET",
    # Stores
    "ConversationStore",
    "InMemoryConversationStore",
    "SQLConversationStore",
    # Factory functions
    "get_conversation_store",
    "get_memory_store",
    "get_sql_store",
    # Reset functions (for testing)
    "reset_conversation_store",
    "reset_memory_store",
    "reset_sql_store",
]
