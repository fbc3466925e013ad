"""
ConversationStore - the persistence boundary the chat core depends on.

Backends:
- InMemoryConversationStore (memory/manager.py): process-local, default
- SQLConversationStore (memory/persistent.py): SQLAlchemy-backed

Ordering contract: list_messages() always returns messages in
(created_at, insertion order); a backend never stores a message with a
timestamp earlier than the previous message of the same conversation.
Writes to one conversation are serialized through conversation_lock().
"""
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from chatrelay.core.exceptions import ConversationNotFoundError
from chatrelay.memory.conversation import DEFAULT_OWNER, ROLES, Conversation, Message

# Distinguishes "leave unchanged" from an explicit None
UNSET = object()


class ConversationStore(ABC):
    """Abstract conversation/message store."""

    storage: str = "abstract"

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def conversation_lock(self, conversation_id: str) -> Iterator[None]:
        """Serialize writes for one conversation (re-entrant)."""
        with self._locks_guard:
            lock = self._locks.setdefault(conversation_id, threading.RLock())
        with lock:
            yield

    def _forget_lock(self, conversation_id: str) -> None:
        with self._locks_guard:
            self._locks.pop(conversation_id, None)

    @staticmethod
    def _check_role(role: str) -> None:
        if role not in ROLES:
            raise ValueError(f"Invalid message role: {role}")

    # ---- core operations -------------------------------------------------

    def get_or_create(
        self,
        conversation_id: Optional[str] = None,
        owner_id: str = DEFAULT_OWNER,
        title: Optional[str] = None,
    ) -> Conversation:
        """
        Return the conversation, creating it when absent.

        With no id, a new conversation with a fresh id is created.
        """
        if conversation_id is None:
            return self.create_conversation(owner_id=owner_id, title=title)

        with self.conversation_lock(conversation_id):
            existing = self.get_conversation(conversation_id)
            if existing is not None:
                return existing
            return self.create_conversation(
                owner_id=owner_id, title=title, conversation_id=conversation_id
            )

    @abstractmethod
    def create_conversation(
        self,
        owner_id: str = DEFAULT_OWNER,
        title: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        ...

    @abstractmethod
    def get_conversation(
        self, conversation_id: str, include_messages: bool = False
    ) -> Optional[Conversation]:
        ...

    @abstractmethod
    def list_messages(
        self,
        conversation_id: str,
        order: str = "asc",
        limit: Optional[int] = None,
    ) -> List[Message]:
        """
        Messages of one conversation.

        Args:
            conversation_id: Conversation to read
            order: "asc" (oldest first) or "desc"
            limit: Keep only the most recent N messages (still in ``order``)
        """
        ...

    @abstractmethod
    def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        image_url: Optional[str] = None,
    ) -> Message:
        ...

    @abstractmethod
    def touch_conversation(self, conversation_id: str, title: Optional[str] = None) -> None:
        """Bump updated_at; set ``title`` only if the conversation has none."""
        ...

    # ---- CRUD surface ----------------------------------------------------

    @abstractmethod
    def update_conversation(
        self,
        conversation_id: str,
        title=UNSET,
        is_pinned: Optional[bool] = None,
        is_archived: Optional[bool] = None,
    ) -> Conversation:
        ...

    def toggle_pin(self, conversation_id: str) -> bool:
        """Flip the pinned flag and return the new value."""
        with self.conversation_lock(conversation_id):
            conversation = self._require(conversation_id)
            return self.update_conversation(
                conversation_id, is_pinned=not conversation.is_pinned
            ).is_pinned

    def toggle_archive(self, conversation_id: str) -> bool:
        """Flip the archived flag and return the new value."""
        with self.conversation_lock(conversation_id):
            conversation = self._require(conversation_id)
            return self.update_conversation(
                conversation_id, is_archived=not conversation.is_archived
            ).is_archived

    @abstractmethod
    def delete_conversation(self, conversation_id: str) -> bool:
        ...

    @abstractmethod
    def delete_all_conversations(self, owner_id: str) -> Tuple[int, int]:
        """Delete every conversation of an owner; returns (conversations, messages)."""
        ...

    @abstractmethod
    def list_conversations(self, owner_id: str, limit: int = 50) -> List[Conversation]:
        """Most recently updated first, each carrying only its latest message."""
        ...

    @abstractmethod
    def search_conversations(self, owner_id: str, query: str) -> List[Conversation]:
        """Case-insensitive match on title or any message content, with messages."""
        ...

    @abstractmethod
    def get_stats(self, owner_id: Optional[str] = None) -> Dict[str, int]:
        ...

    def _require(self, conversation_id: str) -> Conversation:
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation
