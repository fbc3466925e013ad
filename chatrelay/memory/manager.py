"""
In-memory conversation store.

Process-local storage suitable for development, tests and single-instance
deployments. Everything is lost on restart; set MEMORY_PERSISTENT=true for
the SQL-backed store.
"""
import itertools
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from chatrelay.core.exceptions import ConversationNotFoundError
from chatrelay.core.logging_config import get_logger
from chatrelay.memory.base import UNSET, ConversationStore
from chatrelay.memory.conversation import DEFAULT_OWNER, Conversation, Message, next_timestamp

logger = get_logger(__name__)


class InMemoryConversationStore(ConversationStore):
    """
    Thread-safe dictionary-backed store.

    Example:
        >>> store = InMemoryConversationStore()
        >>> conversation = store.get_or_create(owner_id="user-123")
        >>> store.append_message(conversation.id, "user", "Hello!")
        >>> [m.content for m in store.list_messages(conversation.id)]
        ['Hello!']
    """

    storage = "memory"

    def __init__(self):
        super().__init__()
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._message_ids = itertools.count(1)
        self._lock = threading.RLock()

        logger.info("InMemoryConversationStore initialized")

    def create_conversation(
        self,
        owner_id: str = DEFAULT_OWNER,
        title: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        conversation_id = conversation_id or str(uuid.uuid4())
        now = datetime.utcnow()
        conversation = Conversation(
            id=conversation_id,
            owner_id=owner_id,
            title=title,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            if conversation_id in self._conversations:
                raise ValueError(f"Conversation already exists: {conversation_id}")
            self._conversations[conversation_id] = conversation
            self._messages[conversation_id] = []

        logger.info(f"Created conversation: {conversation_id} (owner={owner_id})")
        return replace(conversation, messages=[])

    def get_conversation(
        self, conversation_id: str, include_messages: bool = False
    ) -> Optional[Conversation]:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                return None
            messages = list(self._messages[conversation_id]) if include_messages else []
            return replace(conversation, messages=messages)

    def list_messages(
        self,
        conversation_id: str,
        order: str = "asc",
        limit: Optional[int] = None,
    ) -> List[Message]:
        with self._lock:
            messages = list(self._messages.get(conversation_id, []))

        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        if order == "desc":
            messages.reverse()
        return messages

    def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        image_url: Optional[str] = None,
    ) -> Message:
        self._check_role(role)
        with self.conversation_lock(conversation_id), self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)

            messages = self._messages[conversation_id]
            previous = messages[-1].created_at if messages else None
            message = Message(
                id=next(self._message_ids),
                conversation_id=conversation_id,
                role=role,
                content=content,
                created_at=next_timestamp(previous),
                image_url=image_url,
            )
            messages.append(message)
            conversation.updated_at = next_timestamp(conversation.updated_at)

        logger.debug(f"Saved message: conversation={conversation_id}, role={role}")
        return message

    def touch_conversation(self, conversation_id: str, title: Optional[str] = None) -> None:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            conversation.updated_at = next_timestamp(conversation.updated_at)
            if title and not conversation.title:
                conversation.title = title

    def update_conversation(
        self,
        conversation_id: str,
        title=UNSET,
        is_pinned: Optional[bool] = None,
        is_archived: Optional[bool] = None,
    ) -> Conversation:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            if title is not UNSET:
                conversation.title = title
            if is_pinned is not None:
                conversation.is_pinned = is_pinned
            if is_archived is not None:
                conversation.is_archived = is_archived
            conversation.updated_at = next_timestamp(conversation.updated_at)
            return replace(conversation, messages=[])

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._lock:
            if self._conversations.pop(conversation_id, None) is None:
                return False
            removed = self._messages.pop(conversation_id, [])
        self._forget_lock(conversation_id)
        logger.info(f"Deleted conversation: {conversation_id} ({len(removed)} messages)")
        return True

    def delete_all_conversations(self, owner_id: str) -> Tuple[int, int]:
        with self._lock:
            ids = [c.id for c in self._conversations.values() if c.owner_id == owner_id]
            message_count = sum(len(self._messages.get(cid, [])) for cid in ids)
            for conversation_id in ids:
                self._conversations.pop(conversation_id, None)
                self._messages.pop(conversation_id, None)
        for conversation_id in ids:
            self._forget_lock(conversation_id)

        logger.info(
            f"Deleted {len(ids)} conversations and {message_count} messages for owner: {owner_id}"
        )
        return len(ids), message_count

    def list_conversations(self, owner_id: str, limit: int = 50) -> List[Conversation]:
        with self._lock:
            owned = [c for c in self._conversations.values() if c.owner_id == owner_id]
            owned.sort(key=lambda c: c.updated_at, reverse=True)
            return [
                replace(c, messages=self._messages[c.id][-1:])
                for c in owned[:limit]
            ]

    def search_conversations(self, owner_id: str, query: str) -> List[Conversation]:
        needle = query.lower()
        with self._lock:
            matches = []
            for conversation in self._conversations.values():
                if conversation.owner_id != owner_id:
                    continue
                messages = self._messages[conversation.id]
                title_hit = needle in (conversation.title or "").lower()
                if title_hit or any(needle in m.content.lower() for m in messages):
                    matches.append(replace(conversation, messages=list(messages)))
        matches.sort(key=lambda c: c.updated_at, reverse=True)
        return matches

    def get_stats(self, owner_id: Optional[str] = None) -> Dict[str, int]:
        with self._lock:
            conversations = [
                c for c in self._conversations.values()
                if owner_id is None or c.owner_id == owner_id
            ]
            return {
                "total_conversations": len(conversations),
                "pinned_conversations": sum(1 for c in conversations if c.is_pinned),
                "archived_conversations": sum(1 for c in conversations if c.is_archived),
                "total_messages": sum(len(self._messages[c.id]) for c in conversations),
            }


# Singleton instance
_memory_store: Optional[InMemoryConversationStore] = None


def get_memory_store() -> InMemoryConversationStore:
    """Get or create the in-memory store singleton."""
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryConversationStore()
    return _memory_store


def reset_memory_store() -> None:
    """Reset the in-memory store (for testing)."""
    global _memory_store
    _memory_store = None
