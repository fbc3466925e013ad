"""
Input Validators - Shape checks for inbound chat turns.

Validators return (is_valid, error_message) tuples; callers decide which
exception to raise.
"""
import re
from typing import Any, Optional, Tuple

from chatrelay.core.logging_config import get_logger

logger = get_logger(__name__)

CLIENT_ROLES = {"user", "assistant"}

MAX_CONTENT_LENGTH = 32000
MAX_TURNS_PER_REQUEST = 50

_CONVERSATION_ID_REGEX = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def sanitize_content(content: str) -> str:
    """
    Remove null bytes from message content.

    Whitespace is preserved: chat content routinely carries code blocks.
    """
    if not content:
        return ""
    return content.replace("\x00", "")


def validate_conversation_id(conversation_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate a conversation id.

    Args:
        conversation_id: Id supplied by the client (None = new conversation)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if conversation_id is None:
        return True, None

    if not isinstance(conversation_id, str) or not _CONVERSATION_ID_REGEX.match(conversation_id):
        return False, "Invalid conversationId format"

    return True, None


def validate_turns(messages: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate the list of new turns sent by a client.

    Rules:
    - must be a non-empty list
    - every item is a mapping with role in {user, assistant} and string content
    - the last item is a user turn

    Args:
        messages: Raw ``messages`` value from the request body

    Returns:
        Tuple of (is_valid, error_message)
    """
    if messages is None or not isinstance(messages, list):
        return False, "Invalid messages format"

    if not messages:
        return False, "At least one message is required"

    if len(messages) > MAX_TURNS_PER_REQUEST:
        return False, f"Too many messages (max {MAX_TURNS_PER_REQUEST})"

    for index, turn in enumerate(messages):
        if not isinstance(turn, dict):
            return False, f"messages[{index}] must be an object"

        role = turn.get("role")
        if role not in CLIENT_ROLES:
            return False, f"messages[{index}].role must be 'user' or 'assistant'"

        content = turn.get("content")
        if not isinstance(content, str):
            return False, f"messages[{index}].content must be a string"

        if len(content) > MAX_CONTENT_LENGTH:
            return False, f"messages[{index}].content too long (max {MAX_CONTENT_LENGTH} characters)"

    if messages[-1]["role"] != "user":
        return False, "The last message must be a user message"

    return True, None
