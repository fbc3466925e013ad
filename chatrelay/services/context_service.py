"""
Context Service - Builds the completion request for one chat turn.

The request is always:
    [system turn] + [last N stored messages, oldest first] + [new turns]

History beyond the window is not sent to the model but stays stored.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from chatrelay.core.logging_config import get_logger
from chatrelay.llm.prompts import get_system_turn
from chatrelay.memory.base import ConversationStore

logger = get_logger(__name__)

DEFAULT_CONTEXT_WINDOW = 10


@dataclass
class CompletionRequest:
    """Ordered turns handed to the provider router."""
    turns: List[Dict[str, str]] = field(default_factory=list)
    history_count: int = 0

    def to_messages(self) -> List[Dict[str, str]]:
        return [dict(turn) for turn in self.turns]

    def __len__(self) -> int:
        return len(self.turns)


class ContextAssembler:
    """
    Assembles bounded conversational context from persisted history.

    Example:
        >>> assembler = ContextAssembler(store, window=10)
        >>> request = assembler.build("conv-1", [{"role": "user", "content": "Hi"}])
        >>> request.turns[0]["role"]
        'system'
    """

    def __init__(
        self,
        store: ConversationStore,
        window: int = DEFAULT_CONTEXT_WINDOW,
        system_prompt: Optional[str] = None,
    ):
        self.store = store
        self.window = max(window, 0)
        self.system_prompt = system_prompt

    def build(
        self,
        conversation_id: Optional[str],
        new_turns: Sequence[Dict[str, str]],
    ) -> CompletionRequest:
        """
        Build the completion request.

        Args:
            conversation_id: Existing conversation, or None for one not created yet
            new_turns: Turns sent by the client, appended verbatim

        Returns:
            CompletionRequest with the system turn first and the newest user turn last
        """
        history = []
        if conversation_id is not None and self.window:
            history = self.store.list_messages(conversation_id, order="asc", limit=self.window)

        turns = [get_system_turn(self.system_prompt)]
        turns.extend(message.to_dict() for message in history)
        turns.extend({"role": t["role"], "content": t["content"]} for t in new_turns)

        logger.debug(
            f"Context assembled: conversation={conversation_id}, "
            f"history={len(history)}, new={len(new_turns)}"
        )
        return CompletionRequest(turns=turns, history_count=len(history))
