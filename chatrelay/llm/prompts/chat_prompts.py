"""
Chat prompts - fixed strings shared by every provider adapter.
"""
from typing import Optional

from chatrelay.core.config import DEFAULT_SYSTEM_PROMPT

# Persona used when a prompt carries no system turn
DEFAULT_PERSONA = DEFAULT_SYSTEM_PROMPT

# Returned in place of an empty completion
FALLBACK_RESPONSE = "I apologize, but I could not generate a response."

# Anthropic requires the first turn to come from the user
EMPTY_CONVERSATION_OPENER = "Hello"
ASSISTANT_FIRST_OPENER = "Please respond to my previous message."

TITLE_MAX_LENGTH = 50
DEFAULT_TITLE = "New Chat"


def get_system_turn(system_prompt: Optional[str] = None) -> dict:
    """Build the system turn that heads every completion request."""
    return {"role": "system", "content": system_prompt or DEFAULT_PERSONA}


def derive_title(content: Optional[str]) -> str:
    """Conversation title from the first user message (first 50 characters)."""
    text = (content or "").strip()
    if not text:
        return DEFAULT_TITLE
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_MAX_LENGTH] + "..."
    return text
