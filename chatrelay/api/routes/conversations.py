"""
Conversation Routes - CRUD surface over the conversation store.

Endpoints:
- GET    /api/conversations: List conversations (latest message included)
- POST   /api/conversations: Create one, or {"action": "deleteAll"}
- GET    /api/conversations/search: Search titles and message content
- GET    /api/conversations/stats: Counts for the owner
- GET    /api/conversations/{id}: Full conversation
- PUT    /api/conversations/{id}: Update title / pinned / archived
- DELETE /api/conversations/{id}: Delete one conversation
- PATCH  /api/conversations/{id}/pin: Toggle pinned
- PATCH  /api/conversations/{id}/archive: Toggle archived

Every endpoint is scoped to the X-User-Id owner; a conversation of another
owner answers 403.
"""
from typing import List, Optional, Union

from fastapi import APIRouter, Body, Query

from chatrelay.api.dependencies import OwnerId, Store
from chatrelay.core.exceptions import (
    ConversationAccessError,
    ConversationNotFoundError,
    InvalidRequestError,
)
from chatrelay.core.logging_config import get_logger
from chatrelay.llm.prompts.chat_prompts import DEFAULT_TITLE
from chatrelay.memory.base import UNSET, ConversationStore
from chatrelay.memory.conversation import Conversation
from chatrelay.models.chat import (
    ArchiveResponse,
    ConversationSchema,
    ConversationUpdateRequest,
    CreateConversationRequest,
    DeleteAllResponse,
    DeleteResponse,
    ErrorResponse,
    PinResponse,
    StatsResponse,
)

logger = get_logger(__name__)

DELETE_ALL_ACTION = "deleteAll"
LIST_LIMIT = 50

router = APIRouter(
    prefix="/api/conversations",
    tags=["Conversations"],
    responses={
        403: {"model": ErrorResponse, "description": "Conversation belongs to another owner"},
        404: {"model": ErrorResponse, "description": "Conversation not found"},
    },
)


def _owned(store: ConversationStore, conversation_id: str, owner_id: str,
           include_messages: bool = False) -> Conversation:
    conversation = store.get_conversation(conversation_id, include_messages=include_messages)
    if conversation is None:
        raise ConversationNotFoundError(conversation_id)
    if conversation.owner_id != owner_id:
        raise ConversationAccessError(conversation_id)
    return conversation


@router.get(
    "",
    response_model=List[ConversationSchema],
    summary="List conversations",
    description="Most recently updated first (max 50), each with its latest message.",
)
def list_conversations(store: Store, owner_id: OwnerId) -> List[ConversationSchema]:
    conversations = store.list_conversations(owner_id, limit=LIST_LIMIT)
    return [ConversationSchema.from_domain(c) for c in conversations]


@router.post(
    "",
    response_model=Union[ConversationSchema, DeleteAllResponse],
    summary="Create a conversation",
    description="""
    Create an empty conversation, or delete every conversation of the
    owner when the body is `{"action": "deleteAll"}`.
    """,
)
def create_conversation(
    store: Store,
    owner_id: OwnerId,
    request: Optional[CreateConversationRequest] = Body(default=None),
):
    request = request or CreateConversationRequest()

    if request.action == DELETE_ALL_ACTION:
        conversations, messages = store.delete_all_conversations(owner_id)
        logger.info(f"Deleted all conversations for owner {owner_id}")
        return DeleteAllResponse(
            deleted_conversations=conversations,
            deleted_messages=messages,
        )
    if request.action is not None:
        raise InvalidRequestError(f"Unknown action: {request.action}", field="action")

    conversation = store.create_conversation(
        owner_id=owner_id, title=request.title or DEFAULT_TITLE
    )
    return ConversationSchema.from_domain(conversation)


@router.get(
    "/search",
    response_model=List[ConversationSchema],
    summary="Search conversations",
    description="Case-insensitive match on title or any message content.",
)
def search_conversations(
    store: Store,
    owner_id: OwnerId,
    query: Optional[str] = Query(default=None),
) -> List[ConversationSchema]:
    if not query or not query.strip():
        raise InvalidRequestError("Search query is required", field="query")

    results = store.search_conversations(owner_id, query.strip())
    logger.debug(f"Search '{query[:30]}' for {owner_id}: {len(results)} results")
    return [ConversationSchema.from_domain(c) for c in results]


@router.get("/stats", response_model=StatsResponse, summary="Conversation statistics")
def get_stats(store: Store, owner_id: OwnerId) -> StatsResponse:
    return StatsResponse(**store.get_stats(owner_id))


@router.get("/{conversation_id}", response_model=ConversationSchema, summary="Get a conversation")
def get_conversation(conversation_id: str, store: Store, owner_id: OwnerId) -> ConversationSchema:
    return ConversationSchema.from_domain(
        _owned(store, conversation_id, owner_id, include_messages=True)
    )


@router.put("/{conversation_id}", response_model=ConversationSchema, summary="Update a conversation")
def update_conversation(
    conversation_id: str,
    request: ConversationUpdateRequest,
    store: Store,
    owner_id: OwnerId,
) -> ConversationSchema:
    _owned(store, conversation_id, owner_id)
    conversation = store.update_conversation(
        conversation_id,
        title=request.title if "title" in request.model_fields_set else UNSET,
        is_pinned=request.is_pinned,
        is_archived=request.is_archived,
    )
    return ConversationSchema.from_domain(conversation)


@router.delete("/{conversation_id}", response_model=DeleteResponse, summary="Delete a conversation")
def delete_conversation(conversation_id: str, store: Store, owner_id: OwnerId) -> DeleteResponse:
    _owned(store, conversation_id, owner_id)
    if not store.delete_conversation(conversation_id):
        raise ConversationNotFoundError(conversation_id)
    return DeleteResponse(deleted_id=conversation_id)


@router.patch("/{conversation_id}/pin", response_model=PinResponse, summary="Toggle pinned")
def toggle_pin(conversation_id: str, store: Store, owner_id: OwnerId) -> PinResponse:
    _owned(store, conversation_id, owner_id)
    return PinResponse(is_pinned=store.toggle_pin(conversation_id))


@router.patch("/{conversation_id}/archive", response_model=ArchiveResponse, summary="Toggle archived")
def toggle_archive(conversation_id: str, store: Store, owner_id: OwnerId) -> ArchiveResponse:
    _owned(store, conversation_id, owner_id)
    return ArchiveResponse(is_archived=store.toggle_archive(conversation_id))
