"""
Chat Routes - API endpoints for conversational interactions.

- POST /api/chat: send new turns, get the assistant reply
- GET  /api/chat: read a conversation with its ordered messages

POST is rate limited per owner. It is declared as a plain function so
FastAPI runs the blocking provider calls in its worker thread pool.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, Response

from chatrelay.api.dependencies import Orchestrator, OwnerId
from chatrelay.core.exceptions import RateLimitExceeded
from chatrelay.core.logging_config import get_logger
from chatrelay.core.rate_limiter import get_rate_limiter
from chatrelay.models.chat import ChatRequest, ChatResponse, ConversationSchema, ErrorResponse

logger = get_logger(__name__)

PARTIAL_PERSISTENCE_WARNING = "partial_persistence"

router = APIRouter(
    prefix="/api/chat",
    tags=["Chat"],
    responses={
        400: {"model": ErrorResponse, "description": "Malformed request"},
        403: {"model": ErrorResponse, "description": "Conversation belongs to another owner"},
        404: {"model": ErrorResponse, "description": "Conversation not found"},
        500: {"model": ErrorResponse, "description": "Provider or store failure"},
    },
)


def _enforce_rate_limit(owner_id: str, response: Response) -> None:
    rate_limiter = get_rate_limiter()
    is_allowed, remaining = rate_limiter.is_allowed(owner_id)

    response.headers["X-RateLimit-Limit"] = str(rate_limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(remaining)

    if not is_allowed:
        reset_time = rate_limiter.get_reset_time(owner_id)
        retry_after = max(1, int((reset_time - datetime.utcnow()).total_seconds()))
        raise RateLimitExceeded(retry_after=retry_after)


@router.post(
    "",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    responses={429: {"model": ErrorResponse, "description": "Rate limit exceeded"}},
    summary="Send a message to the assistant",
    description="""
    Send new conversational turns and receive the assistant's reply.

    **Multi-turn Conversations:**
    Include the `conversationId` returned by a previous call to continue a
    conversation. The most recent stored messages are sent as context.
    Omit it to start a new conversation; the new id is returned.

    **Providers:**
    Configured providers are tried in order until one answers. Pass
    `model` to try a specific model first.

    **Rate Limiting:**
    Requests are limited per owner (`X-User-Id` header).
    Check the X-RateLimit-Remaining header for remaining requests.
    """,
)
def send_message(
    request: ChatRequest,
    response: Response,
    orchestrator: Orchestrator,
    owner_id: OwnerId,
) -> ChatResponse:
    """Process new turns and return the assistant's reply."""
    _enforce_rate_limit(owner_id, response)

    result = orchestrator.handle(
        request.messages,
        conversation_id=request.conversation_id,
        owner_id=owner_id,
        model=request.model,
    )

    return ChatResponse(
        response=result.assistant_text,
        conversation_id=result.conversation_id,
        warning=PARTIAL_PERSISTENCE_WARNING if result.partial_persistence else None,
    )


@router.get(
    "",
    response_model=ConversationSchema,
    summary="Get a conversation",
    description="Return a conversation with all of its messages, oldest first.",
)
def get_conversation(
    orchestrator: Orchestrator,
    owner_id: OwnerId,
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
) -> ConversationSchema:
    """Read path; never writes."""
    conversation = orchestrator.get_conversation_view(conversation_id, owner_id)
    return ConversationSchema.from_domain(conversation)
