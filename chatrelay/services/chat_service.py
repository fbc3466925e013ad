"""
Chat Service - Business logic for one conversational exchange.

This service orchestrates the chat flow:
1. Validates the new turns and resolves the conversation
2. Assembles context from stored history
3. Gets a completion through the provider router
4. Persists the user turn(s) and the assistant reply
5. Returns the reply with its conversation id

Nothing is written before a completion exists: a failed provider call leaves
the store untouched, including for brand-new conversations.
"""
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from chatrelay.core.exceptions import (
    ChatRelayException,
    ConversationAccessError,
    ConversationNotFoundError,
    InvalidRequestError,
    StoreError,
)
from chatrelay.core.logging_config import get_logger
from chatrelay.core.validators import sanitize_content, validate_conversation_id, validate_turns
from chatrelay.llm.prompts import derive_title
from chatrelay.llm.router import ProviderRouter
from chatrelay.memory.base import ConversationStore
from chatrelay.memory.conversation import DEFAULT_OWNER, Conversation
from chatrelay.services.context_service import ContextAssembler

logger = get_logger(__name__)


class ChatState(str, Enum):
    IDLE = "idle"
    RESOLVING_CONVERSATION = "resolving_conversation"
    ASSEMBLING_CONTEXT = "assembling_context"
    CALLING_PROVIDER = "calling_provider"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ChatResult:
    """Outcome of a successful exchange."""
    conversation_id: str
    assistant_text: str
    state: ChatState = ChatState.DONE
    partial_persistence: bool = False


class ChatOrchestrator:
    """
    Runs one chat exchange end to end.

    Example:
        >>> orchestrator = ChatOrchestrator(store, ContextAssembler(store), router)
        >>> result = orchestrator.handle([{"role": "user", "content": "Hello!"}])
        >>> result.conversation_id
        '3f2b...'
        >>> # Follow-up keeps the context
        >>> orchestrator.handle(
        ...     [{"role": "user", "content": "And then?"}],
        ...     conversation_id=result.conversation_id,
        ... )
    """

    def __init__(
        self,
        store: ConversationStore,
        assembler: ContextAssembler,
        router: ProviderRouter,
    ):
        self.store = store
        self.assembler = assembler
        self.router = router
        logger.info(f"ChatOrchestrator initialized (store={store.storage})")

    def handle(
        self,
        messages: Any,
        conversation_id: Optional[str] = None,
        owner_id: str = DEFAULT_OWNER,
        model: Optional[str] = None,
    ) -> ChatResult:
        """
        Process new turns and return the assistant reply.

        Args:
            messages: New turns, each {"role": "user"|"assistant", "content": str}
            conversation_id: Existing conversation, or None to start a new one
            owner_id: Scoping key of the caller
            model: Optional model to try first

        Returns:
            ChatResult with conversation id and reply text

        Raises:
            InvalidRequestError: Malformed turns or conversation id
            ConversationNotFoundError: Unknown conversation id
            ConversationAccessError: Conversation belongs to another owner
            ProviderUnavailableError: No provider produced a completion
            StoreError: History could not be read
        """
        state = ChatState.RESOLVING_CONVERSATION
        try:
            turns = self._validate(messages, conversation_id)
            existing = self._resolve(conversation_id, owner_id)
            target_id = existing.id if existing else str(uuid.uuid4())

            logger.info(
                f"Processing chat: conversation={target_id}, new={existing is None}, "
                f"turns={len(turns)}, owner={owner_id}"
            )

            state = ChatState.ASSEMBLING_CONTEXT
            request = self.assembler.build(existing.id if existing else None, turns)

            state = ChatState.CALLING_PROVIDER
            text = self.router.generate(request.to_messages(), preferred_model=model)

            state = ChatState.PERSISTING
            partial = not self._persist(target_id, owner_id, turns, text)
        except ChatRelayException as e:
            logger.error(
                f"Chat {ChatState.FAILED.value} while {state.value}: {e.error_code}: {e.message}"
            )
            raise

        logger.info(
            f"Chat completed: conversation={target_id}, response_length={len(text)}, "
            f"context={len(request)}"
        )
        return ChatResult(
            conversation_id=target_id,
            assistant_text=text,
            partial_persistence=partial,
        )

    def get_conversation_view(self, conversation_id: Optional[str], owner_id: str = DEFAULT_OWNER) -> Conversation:
        """Full conversation with ordered messages for its owner."""
        if not conversation_id:
            raise InvalidRequestError("Conversation ID is required", field="conversationId")

        conversation = self.store.get_conversation(conversation_id, include_messages=True)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        if conversation.owner_id != owner_id:
            raise ConversationAccessError(conversation_id)
        return conversation

    # ---- steps -----------------------------------------------------------

    @staticmethod
    def _validate(messages: Any, conversation_id: Optional[str]) -> List[Dict[str, str]]:
        is_valid, error = validate_turns(messages)
        if not is_valid:
            raise InvalidRequestError(error, field="messages")

        is_valid, error = validate_conversation_id(conversation_id)
        if not is_valid:
            raise InvalidRequestError(error, field="conversationId")

        return [
            {"role": turn["role"], "content": sanitize_content(turn["content"])}
            for turn in messages
        ]

    def _resolve(self, conversation_id: Optional[str], owner_id: str) -> Optional[Conversation]:
        if conversation_id is None:
            return None

        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        if conversation.owner_id != owner_id:
            logger.warning(f"Owner {owner_id} denied access to conversation {conversation_id}")
            raise ConversationAccessError(conversation_id)
        return conversation

    def _persist(
        self,
        conversation_id: str,
        owner_id: str,
        turns: List[Dict[str, str]],
        assistant_text: str,
    ) -> bool:
        """Write the exchange; False when the store failed part way."""
        title = derive_title(turns[-1]["content"])
        try:
            with self.store.conversation_lock(conversation_id):
                self.store.get_or_create(conversation_id, owner_id=owner_id, title=title)
                for turn in turns:
                    # Client-echoed assistant turns are context only
                    if turn["role"] == "user":
                        self.store.append_message(conversation_id, "user", turn["content"])
                self.store.append_message(conversation_id, "assistant", assistant_text)
                self.store.touch_conversation(conversation_id, title=title)
        except StoreError as e:
            logger.warning(
                f"Partial persistence for conversation {conversation_id}: {e.message}"
            )
            return False
        return True


# Singleton instance
_chat_orchestrator: Optional[ChatOrchestrator] = None


def get_chat_orchestrator() -> ChatOrchestrator:
    """Get or create the orchestrator wired from configuration."""
    global _chat_orchestrator
    if _chat_orchestrator is None:
        from chatrelay.core.config import get_settings
        from chatrelay.llm.factory import build_router
        from chatrelay.memory import get_conversation_store

        settings = get_settings()
        store = get_conversation_store(settings)
        _chat_orchestrator = ChatOrchestrator(
            store=store,
            assembler=ContextAssembler(
                store,
                window=settings.context_window,
                system_prompt=settings.system_prompt,
            ),
            router=build_router(settings),
        )
    return _chat_orchestrator


def reset_chat_orchestrator() -> None:
    """Reset the orchestrator (for testing)."""
    global _chat_orchestrator
    _chat_orchestrator = None
