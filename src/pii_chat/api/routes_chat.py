"""
Chat route: one question in, one UI message stream out.

The generation stream is opened before the response is created, so a
provider that cannot be reached is answered with a plain 502 and no stream.
Persistence runs as a background task once the last frame has been sent.
"""

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from pii_chat.api.dependencies import get_orchestrator
from pii_chat.models.chat_models import ChatRequest
from pii_chat.pipeline.orchestrator import ChatOrchestrator
from pii_chat.pipeline.sse import (
    SSE_MEDIA_TYPE,
    UI_MESSAGE_STREAM_HEADERS,
    encode_ui_message_stream,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/api/chat",
    status_code=status.HTTP_200_OK,
    summary="Stream an answer with PII metadata",
    description="""
    Stream the answer to one question as server-sent UI message events.

    Order: start, the generation's step and text events, one
    message-metadata event carrying `{pii: [...]}`, finish, `[DONE]`.
    Placeholders `$N` in the answer text refer to `pii[N-1]`.
    """,
    response_class=StreamingResponse,
    responses={
        200: {"description": "Event stream", "content": {SSE_MEDIA_TYPE: {}}},
        400: {"description": "Invalid request body"},
        502: {"description": "Generation provider unavailable (plain text)"},
        504: {"description": "Generation provider timed out (plain text)"},
    },
)
async def chat(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    exchange = await orchestrator.open(request)

    return StreamingResponse(
        encode_ui_message_stream(exchange.events()),
        media_type=SSE_MEDIA_TYPE,
        headers=UI_MESSAGE_STREAM_HEADERS,
        background=BackgroundTask(exchange.persist),
    )
