"""
FastAPI dependencies shared by the route modules.

Routes never reach for singletons directly; tests swap these out through
``app.dependency_overrides``.
"""
from typing import Annotated, Optional

from fastapi import Depends, Header

from chatrelay.core.config import Settings, get_settings
from chatrelay.memory import ConversationStore, get_conversation_store
from chatrelay.memory.conversation import DEFAULT_OWNER
from chatrelay.services.chat_service import ChatOrchestrator, get_chat_orchestrator


def get_app_settings() -> Settings:
    """Provide application settings via dependency injection."""
    return get_settings()


def get_store() -> ConversationStore:
    """Provide the configured conversation store."""
    return get_conversation_store()


def get_orchestrator() -> ChatOrchestrator:
    """Provide the chat orchestrator singleton."""
    return get_chat_orchestrator()


def get_owner_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """
    Owner scoping key from the X-User-Id header.

    This is not authentication; requests without the header share the
    default owner.
    """
    owner_id = (x_user_id or "").strip()[:64]
    return owner_id or DEFAULT_OWNER


# Type aliases for cleaner route signatures
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[ConversationStore, Depends(get_store)]
Orchestrator = Annotated[ChatOrchestrator, Depends(get_orchestrator)]
OwnerId = Annotated[str, Depends(get_owner_id)]
