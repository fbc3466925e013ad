"""
Conversation Memory - Domain objects shared by every store backend.

- Message: one immutable turn inside a conversation
- Conversation: a thread of messages owned by one owner id
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Optional

Role = Literal["user", "assistant", "system"]

ROLES = ("user", "assistant", "system")

DEFAULT_OWNER = "default-user"


@dataclass(frozen=True)
class Message:
    """
    Represents a single message in a conversation.

    Attributes:
        id: Store-assigned identifier, increasing in insertion order
        conversation_id: Owning conversation
        role: The role of the message sender (user, assistant, or system)
        content: The message content
        created_at: When the message was stored
        image_url: Optional image payload reference

    Example:
        >>> msg = Message(id=1, conversation_id="c1", role="user", content="Hi")
        >>> msg.to_dict()
        {'role': 'user', 'content': 'Hi'}
    """
    id: int
    conversation_id: str
    role: Role
    content: str
    created_at: datetime = field(default_factory=datetime.utcnow)
    image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        """Convert to dict format for LLM API (role + content only)."""
        return {"role": self.role, "content": self.content}


@dataclass
class Conversation:
    """
    A conversation thread.

    ``messages`` is only filled by read paths that ask for messages
    (full reads, listings with their latest message, search results).
    """
    id: str
    owner_id: str = DEFAULT_OWNER
    title: Optional[str] = None
    is_pinned: bool = False
    is_archived: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    messages: List[Message] = field(default_factory=list)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Current time, but never earlier than the previous message's timestamp."""
    now = datetime.utcnow()
    if previous is not None and previous > now:
        return previous
    return now
