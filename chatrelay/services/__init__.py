"""
Services module - Business logic and orchestration.

Services contain the core application logic:
- No HTTP concerns (those belong in api/)
- No SQL (that belongs in memory/ and database/)
- Orchestrate between the provider router and the conversation store
"""
from chatrelay.services.context_service import CompletionRequest, ContextAssembler
from chatrelay.services.chat_service import (
    ChatOrchestrator,
    ChatResult,
    ChatState,
    get_chat_orchestrator,
    reset_chat_orchestrator,
)

__all__ = [
    "CompletionRequest",
    "ContextAssembler",
    "ChatOrchestrator",
    "ChatResult",
    "ChatState",
    "get_chat_orchestrator",
    "reset_chat_orchestrator",
]
