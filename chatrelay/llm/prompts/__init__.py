"""
Prompts module - fixed prompt strings.

Prompts are stored as separate Python files for:
- Version control of prompt changes
- Clear documentation of prompt purpose
"""
from chatrelay.llm.prompts.chat_prompts import (
    DEFAULT_PERSONA,
    FALLBACK_RESPONSE,
    get_system_turn,
    derive_title,
)

__all__ = [
    "DEFAULT_PERSONA",
    "FALLBACK_RESPONSE",
    "get_system_turn",
    "derive_title",
]
