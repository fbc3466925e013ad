"""
Request and Response models for the Chat and Conversations APIs.

These Pydantic models define the contract between client and server.
They provide:
- Type validation
- Automatic documentation
- Request/response serialization (camelCase on the wire)
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from chatrelay.memory.conversation import Conversation, Message


class CamelModel(BaseModel):
    """Accepts both camelCase aliases and field names."""
    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(CamelModel):
    """
    Request model for POST /api/chat.

    Item-level checks on ``messages`` happen in the chat service so every
    malformed shape maps to the same 400 response.
    """
    messages: Optional[List[Any]] = Field(
        default=None,
        description="New turns; the last one must be a user turn",
        examples=[[{"role": "user", "content": "Hello!"}]],
    )
    conversation_id: Optional[str] = Field(
        default=None,
        alias="conversationId",
        description="Existing conversation to continue; omit to start a new one",
    )
    model: Optional[str] = Field(
        default=None,
        description="Model to try before the configured provider order",
        examples=["gpt-4o-mini"],
    )


class ChatResponse(CamelModel):
    """Response model for POST /api/chat."""
    response: str = Field(..., description="The assistant's reply")
    conversation_id: str = Field(..., alias="conversationId")
    warning: Optional[str] = Field(
        default=None,
        description="'partial_persistence' when the exchange was not fully stored",
    )


class MessageSchema(CamelModel):
    id: int
    role: str
    content: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_domain(cls, message: Message) -> "MessageSchema":
        return cls(
            id=message.id,
            role=message.role,
            content=message.content,
            image_url=message.image_url,
            created_at=message.created_at,
        )


class ConversationSchema(CamelModel):
    """A conversation with whichever messages the read path loaded."""
    id: str
    title: Optional[str] = None
    is_pinned: bool = Field(default=False, alias="isPinned")
    is_archived: bool = Field(default=False, alias="isArchived")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
    messages: List[MessageSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, conversation: Conversation) -> "ConversationSchema":
        return cls(
            id=conversation.id,
            title=conversation.title,
            is_pinned=conversation.is_pinned,
            is_archived=conversation.is_archived,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            messages=[MessageSchema.from_domain(m) for m in conversation.messages],
        )


class CreateConversationRequest(CamelModel):
    """POST /api/conversations body: create, or ``{"action": "deleteAll"}``."""
    title: Optional[str] = Field(default=None, max_length=200)
    action: Optional[str] = Field(default=None, examples=["deleteAll"])


class ConversationUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, max_length=200)
    is_pinned: Optional[bool] = Field(default=None, alias="isPinned")
    is_archived: Optional[bool] = Field(default=None, alias="isArchived")


class DeleteResponse(CamelModel):
    success: bool = True
    deleted_id: str = Field(..., alias="deletedId")


class DeleteAllResponse(CamelModel):
    success: bool = True
    deleted_conversations: int = Field(..., alias="deletedConversations")
    deleted_messages: int = Field(..., alias="deletedMessages")


class PinResponse(CamelModel):
    is_pinned: bool = Field(..., alias="isPinned")


class ArchiveResponse(CamelModel):
    is_archived: bool = Field(..., alias="isArchived")


class StatsResponse(CamelModel):
    total_conversations: int = Field(..., alias="totalConversations")
    pinned_conversations: int = Field(..., alias="pinnedConversations")
    archived_conversations: int = Field(..., alias="archivedConversations")
    total_messages: int = Field(..., alias="totalMessages")


class HealthResponse(BaseModel):
    """Response model for the /health endpoint."""
    status: str = Field(default="healthy")
    version: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ProvidersHealthResponse(BaseModel):
    """Which vendors are configured; never exposes credentials."""
    status: str
    providers: dict = Field(..., description="Vendor name -> credential present")
    candidates: List[str] = Field(default_factory=list, description="provider/model in routing order")
    storage: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    message: str
    details: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
