"""
Models module - Pydantic schemas for data validation.

This module defines:
- Request models: Input validation for API endpoints
- Response models: Output formatting for API responses (camelCase aliases)
"""
from chatrelay.models.chat import (
    ArchiveResponse,
    ChatRequest,
    ChatResponse,
    ConversationSchema,
    ConversationUpdateRequest,
    CreateConversationRequest,
    DeleteAllResponse,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    MessageSchema,
    PinResponse,
    ProvidersHealthResponse,
    StatsResponse,
)

__all__ = [
    "ArchiveResponse",
    "ChatRequest",
    "ChatResponse",
    "ConversationSchema",
    "ConversationUpdateRequest",
    "CreateConversationRequest",
    "DeleteAllResponse",
    "DeleteResponse",
    "ErrorResponse",
    "HealthResponse",
    "MessageSchema",
    "PinResponse",
    "ProvidersHealthResponse",
    "StatsResponse",
]
