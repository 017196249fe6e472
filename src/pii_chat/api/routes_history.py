"""
Conversation history routes and the service health check.

Listing is pull-style: clients ask for the most recent conversations and
load one by id. Views render stored turns with their PII masked.
"""

from datetime import datetime, timezone
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import HTMLResponse, JSONResponse

from pii_chat.api.dependencies import (
    get_llm_client,
    get_renderer,
    get_repository,
    get_settings,
)
from pii_chat.api.models import (
    ConversationListResponse,
    ConversationSummary,
    ConversationView,
    HealthResponse,
    SaveConversationRequest,
)
from pii_chat.config import Settings
from pii_chat.history.codec import from_conversation_turns, to_conversation_turns
from pii_chat.llm.base_client import BaseLLMClient
from pii_chat.models.chat_models import Conversation
from pii_chat.persistence.exceptions import ConversationNotFound
from pii_chat.persistence.repository import ConversationRepository
from pii_chat.redaction.renderer import RedactionRenderer

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _load(repository: ConversationRepository, conversation_id: UUID) -> Conversation:
    conversation = await repository.get(conversation_id)
    if conversation is None:
        raise ConversationNotFound(conversation_id)
    return conversation


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    summary="List conversations, most recent first",
)
async def list_conversations(
    limit: int | None = Query(default=None, ge=1, le=500),
    repository: ConversationRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> ConversationListResponse:
    conversations = await repository.list_recent(limit or settings.CONVERSATION_LIST_LIMIT)
    return ConversationListResponse(
        conversations=[ConversationSummary.from_conversation(c) for c in conversations]
    )


@router.get(
    "/conversations/{conversation_id}",
    response_model=Conversation,
    summary="Get a stored conversation",
    responses={404: {"description": "Conversation not found"}},
)
async def get_conversation(
    conversation_id: UUID,
    repository: ConversationRepository = Depends(get_repository),
) -> JSONResponse:
    conversation = await _load(repository, conversation_id)
    return JSONResponse(conversation.model_dump(mode="json", by_alias=True))


@router.put(
    "/conversations/{conversation_id}",
    response_model=Conversation,
    summary="Save a conversation from the client's message list",
    description="""
    Replace the stored conversation with the given live messages.

    System messages and messages without text are dropped; each message's
    `metadata.pii` list is kept alongside its placeholder text. Returns 204
    when nothing is left to save.
    """,
    responses={204: {"description": "Nothing to save"}},
)
async def save_conversation(
    conversation_id: UUID,
    body: SaveConversationRequest,
    repository: ConversationRepository = Depends(get_repository),
):
    turns = to_conversation_turns(body.messages)
    if not turns:
        logger.info("Nothing to save", conversation_id=str(conversation_id))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    conversation = Conversation(
        id=conversation_id,
        date=datetime.now(timezone.utc),
        messages=turns,
    )
    await repository.save(conversation)
    return JSONResponse(conversation.model_dump(mode="json", by_alias=True))


@router.delete(
    "/conversations/{conversation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a conversation",
    responses={404: {"description": "Conversation not found"}},
)
async def delete_conversation(
    conversation_id: UUID,
    repository: ConversationRepository = Depends(get_repository),
) -> Response:
    if not await repository.delete(conversation_id):
        raise ConversationNotFound(conversation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/conversations/{conversation_id}/view",
    response_model=ConversationView,
    summary="Rendered turns with PII masked",
)
async def view_conversation(
    conversation_id: UUID,
    repository: ConversationRepository = Depends(get_repository),
    renderer: RedactionRenderer = Depends(get_renderer),
) -> ConversationView:
    conversation = await _load(repository, conversation_id)
    return ConversationView(
        id=conversation.id,
        turns=from_conversation_turns(conversation.messages, renderer),
    )


@router.get(
    "/conversations/{conversation_id}/view.html",
    response_class=HTMLResponse,
    summary="HTML fragment with click-to-reveal PII tokens",
)
async def view_conversation_html(
    conversation_id: UUID,
    repository: ConversationRepository = Depends(get_repository),
    renderer: RedactionRenderer = Depends(get_renderer),
) -> HTMLResponse:
    conversation = await _load(repository, conversation_id)
    turns = from_conversation_turns(conversation.messages, renderer)
    return HTMLResponse(renderer.render_html(turns))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="""
    Check the health of the chat service and its dependencies.

    Returns status of:
    - Ollama (generation and detection models)
    - Redis (conversation store)
    """,
    responses={
        200: {"description": "All services healthy, or only the store degraded"},
        503: {"description": "Model server unreachable"},
    },
)
async def health_check(
    llm_client: BaseLLMClient = Depends(get_llm_client),
    repository: ConversationRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    services = {
        "ollama": "ok" if await llm_client.health_check() else "unreachable",
        "redis": "ok" if await repository.ping() else "unreachable",
    }

    if all(state == "ok" for state in services.values()):
        health_status = "healthy"
        status_code = status.HTTP_200_OK
    elif services["ollama"] == "ok":  # Chat still works, history does not
        health_status = "degraded"
        status_code = status.HTTP_200_OK
    else:
        health_status = "unhealthy"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    logger.info("Health check", status=health_status, services=services)

    response = HealthResponse(
        status=health_status,
        version=settings.APP_VERSION,
        services=services,
    )
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))
