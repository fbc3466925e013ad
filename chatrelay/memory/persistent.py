"""
Persistent conversation store - SQLAlchemy-backed.

Conversations survive restarts. Every public method runs in its own
transaction; SQLAlchemy failures surface as StoreError so the chat core
never sees driver exceptions.
"""
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.core.exceptions import ConversationNotFoundError, StoreError
from chatrelay.core.logging_config import get_logger
from chatrelay.database.connection import DatabaseConnection, get_database
from chatrelay.database.models import ConversationRecord, MessageRecord
from chatrelay.memory.base import UNSET, ConversationStore
from chatrelay.memory.conversation import DEFAULT_OWNER, Conversation, Message, next_timestamp

logger = get_logger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLConversationStore(ConversationStore):
    """
    Database-backed conversation store.

    Example:
        >>> store = SQLConversationStore(DatabaseConnection("sqlite:///:memory:"))
        >>> conversation = store.get_or_create(owner_id="user-123")
        >>> store.append_message(conversation.id, "user", "Hello!")
    """

    storage = "persistent"

    def __init__(self, db: Optional[DatabaseConnection] = None):
        super().__init__()
        self.db = db or get_database()
        logger.info("SQLConversationStore initialized")

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.db.get_session() as session:
                yield session
        except SQLAlchemyError as e:
            raise StoreError(f"Conversation store operation failed: {type(e).__name__}") from e

    # ---- mapping ---------------------------------------------------------

    @staticmethod
    def _to_message(record: MessageRecord) -> Message:
        return Message(
            id=record.id,
            conversation_id=record.conversation_id,
            role=record.role,
            content=record.content,
            created_at=record.created_at,
            image_url=record.image_url,
        )

    @classmethod
    def _to_conversation(
        cls, record: ConversationRecord, messages: Optional[List[MessageRecord]] = None
    ) -> Conversation:
        return Conversation(
            id=record.id,
            owner_id=record.owner_id,
            title=record.title,
            is_pinned=record.is_pinned,
            is_archived=record.is_archived,
            created_at=record.created_at,
            updated_at=record.updated_at,
            messages=[cls._to_message(m) for m in messages or []],
        )

    @staticmethod
    def _ordered_messages(session: Session, conversation_id: str):
        return session.query(MessageRecord).filter(
            MessageRecord.conversation_id == conversation_id
        ).order_by(MessageRecord.created_at.asc(), MessageRecord.id.asc())

    @staticmethod
    def _latest_message(session: Session, conversation_id: str) -> Optional[MessageRecord]:
        return session.query(MessageRecord).filter(
            MessageRecord.conversation_id == conversation_id
        ).order_by(MessageRecord.created_at.desc(), MessageRecord.id.desc()).first()

    # ---- core operations -------------------------------------------------

    def create_conversation(
        self,
        owner_id: str = DEFAULT_OWNER,
        title: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> Conversation:
        now = datetime.utcnow()
        record = ConversationRecord(
            id=conversation_id or str(uuid.uuid4()),
            owner_id=owner_id,
            title=title,
            is_pinned=False,
            is_archived=False,
            created_at=now,
            updated_at=now,
        )
        with self._session() as session:
            session.add(record)
            session.flush()
            conversation = self._to_conversation(record)

        logger.info(f"[PERSISTENT] Created conversation: {conversation.id} (owner={owner_id})")
        return conversation

    def get_conversation(
        self, conversation_id: str, include_messages: bool = False
    ) -> Optional[Conversation]:
        with self._session() as session:
            record = session.get(ConversationRecord, conversation_id)
            if record is None:
                return None
            messages = self._ordered_messages(session, conversation_id).all() if include_messages else None
            return self._to_conversation(record, messages)

    def list_messages(
        self,
        conversation_id: str,
        order: str = "asc",
        limit: Optional[int] = None,
    ) -> List[Message]:
        with self._session() as session:
            if limit is None:
                records = self._ordered_messages(session, conversation_id).all()
                if order == "desc":
                    records.reverse()
            else:
                # newest N first, then flipped back for ascending reads
                records = session.query(MessageRecord).filter(
                    MessageRecord.conversation_id == conversation_id
                ).order_by(
                    MessageRecord.created_at.desc(), MessageRecord.id.desc()
                ).limit(max(limit, 0)).all()
                if order != "desc":
                    records.reverse()

            messages = [self._to_message(r) for r in records]

        logger.debug(f"[PERSISTENT] Loaded {len(messages)} messages for {conversation_id}")
        return messages

    def append_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        image_url: Optional[str] = None,
    ) -> Message:
        self._check_role(role)
        with self.conversation_lock(conversation_id), self._session() as session:
            conversation = session.get(ConversationRecord, conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)

            previous = self._latest_message(session, conversation_id)
            record = MessageRecord(
                conversation_id=conversation_id,
                role=role,
                content=content,
                image_url=image_url,
                created_at=next_timestamp(previous.created_at if previous else None),
            )
            session.add(record)
            conversation.updated_at = next_timestamp(conversation.updated_at)
            session.flush()
            message = self._to_message(record)

        logger.debug(f"[PERSISTENT] Saved message: conversation={conversation_id}, role={role}")
        return message

    def touch_conversation(self, conversation_id: str, title: Optional[str] = None) -> None:
        with self._session() as session:
            record = session.get(ConversationRecord, conversation_id)
            if record is None:
                raise ConversationNotFoundError(conversation_id)
            record.updated_at = next_timestamp(record.updated_at)
            if title and not record.title:
                record.title = title

    # ---- CRUD surface ----------------------------------------------------

    def update_conversation(
        self,
        conversation_id: str,
        title=UNSET,
        is_pinned: Optional[bool] = None,
        is_archived: Optional[bool] = None,
    ) -> Conversation:
        with self._session() as session:
            record = session.get(ConversationRecord, conversation_id)
            if record is None:
                raise ConversationNotFoundError(conversation_id)
            if title is not UNSET:
                record.title = title
            if is_pinned is not None:
                record.is_pinned = is_pinned
            if is_archived is not None:
                record.is_archived = is_archived
            record.updated_at = next_timestamp(record.updated_at)
            session.flush()
            return self._to_conversation(record)

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._session() as session:
            record = session.get(ConversationRecord, conversation_id)
            if record is None:
                return False
            session.query(MessageRecord).filter(
                MessageRecord.conversation_id == conversation_id
            ).delete(synchronize_session=False)
            session.delete(record)

        self._forget_lock(conversation_id)
        logger.info(f"[PERSISTENT] Deleted conversation: {conversation_id}")
        return True

    def delete_all_conversations(self, owner_id: str) -> Tuple[int, int]:
        with self._session() as session:
            ids = [
                row[0] for row in session.query(ConversationRecord.id).filter(
                    ConversationRecord.owner_id == owner_id
                ).all()
            ]
            if not ids:
                return 0, 0

            message_count = session.query(MessageRecord).filter(
                MessageRecord.conversation_id.in_(ids)
            ).delete(synchronize_session=False)
            conversation_count = session.query(ConversationRecord).filter(
                ConversationRecord.id.in_(ids)
            ).delete(synchronize_session=False)

        for conversation_id in ids:
            self._forget_lock(conversation_id)

        logger.info(
            f"[PERSISTENT] Deleted {conversation_count} conversations and "
            f"{message_count} messages for owner: {owner_id}"
        )
        return conversation_count, message_count

    def list_conversations(self, owner_id: str, limit: int = 50) -> List[Conversation]:
        with self._session() as session:
            records = session.query(ConversationRecord).filter(
                ConversationRecord.owner_id == owner_id
            ).order_by(ConversationRecord.updated_at.desc()).limit(limit).all()

            result = []
            for record in records:
                latest = self._latest_message(session, record.id)
                result.append(self._to_conversation(record, [latest] if latest else None))
            return result

    def search_conversations(self, owner_id: str, query: str) -> List[Conversation]:
        pattern = f"%{_escape_like(query)}%"
        with self._session() as session:
            records = session.query(ConversationRecord).filter(
                ConversationRecord.owner_id == owner_id,
                or_(
                    ConversationRecord.title.ilike(pattern, escape="\\"),
                    ConversationRecord.messages.any(
                        MessageRecord.content.ilike(pattern, escape="\\")
                    ),
                ),
            ).order_by(ConversationRecord.updated_at.desc()).all()

            return [
                self._to_conversation(r, self._ordered_messages(session, r.id).all())
                for r in records
            ]

    def get_stats(self, owner_id: Optional[str] = None) -> Dict[str, int]:
        with self._session() as session:
            conversations = session.query(ConversationRecord)
            if owner_id is not None:
                conversations = conversations.filter(ConversationRecord.owner_id == owner_id)

            messages = session.query(func.count(MessageRecord.id)).join(
                ConversationRecord, MessageRecord.conversation_id == ConversationRecord.id
            )
            if owner_id is not None:
                messages = messages.filter(ConversationRecord.owner_id == owner_id)

            return {
                "total_conversations": conversations.count(),
                "pinned_conversations": conversations.filter(ConversationRecord.is_pinned.is_(True)).count(),
                "archived_conversations": conversations.filter(ConversationRecord.is_archived.is_(True)).count(),
                "total_messages": messages.scalar() or 0,
            }


# Singleton instance
_sql_store: Optional[SQLConversationStore] = None


def get_sql_store() -> SQLConversationStore:
    """Get or create the SQL store singleton."""
    global _sql_store
    if _sql_store is None:
        _sql_store = SQLConversationStore()
    return _sql_store


def reset_sql_store() -> None:
    """Reset the SQL store (for testing)."""
    global _sql_store
    _sql_store = None
