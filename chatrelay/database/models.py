"""
Database Models - SQLAlchemy ORM models for persistent conversation storage.

Conversations own their messages: deleting a conversation deletes them.
Messages are ordered by (created_at, id); the autoincrement id breaks
timestamp ties in insertion order.
"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class ConversationRecord(Base):
    """A single conversation thread."""
    __tablename__ = "conversations"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=True)
    owner_id = Column(String(128), nullable=False, index=True)
    is_pinned = Column(Boolean, default=False, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    messages = relationship(
        "MessageRecord",
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [MessageRecord.created_at, MessageRecord.id],
    )


class MessageRecord(Base):
    """One immutable message inside a conversation."""
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_order", "conversation_id", "created_at", "id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        String(64),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = Column(String(20), nullable=False)  # 'user', 'assistant', 'system'
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    conversation = relationship("ConversationRecord", back_populates="messages")
