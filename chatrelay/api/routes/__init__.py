"""
API Routes module - Endpoint definitions.

Each file in this module defines routes for a specific domain:
- chat.py          : Conversational endpoints
- conversations.py : Conversation CRUD endpoints
- health.py        : Health check endpoints
"""
from chatrelay.api.routes.chat import router as chat_router
from chatrelay.api.routes.conversations import router as conversations_router
from chatrelay.api.routes.health import router as health_router

__all__ = [
    "chat_router",
    "conversations_router",
    "health_router",
]
