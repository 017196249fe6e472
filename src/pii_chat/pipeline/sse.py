"""
Server-sent events framing for the UI message stream protocol (v1).

Every protocol event becomes one `data: <JSON>\\n\\n` frame; the stream is
terminated by `data: [DONE]\\n\\n`.
"""

from contextlib import aclosing
from typing import AsyncIterator

import structlog
from pydantic_core import PydanticSerializationError

from pii_chat.models.protocol import ErrorEvent, FinishEvent, ProtocolEvent
from pii_chat.monitoring.metrics import chat_exchanges_total
from pii_chat.pipeline.exceptions import StreamAssemblyError


logger = structlog.get_logger(__name__)

UI_MESSAGE_STREAM_HEADERS = {
    "x-vercel-ai-ui-message-stream": "v1",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

SSE_MEDIA_TYPE = "text/event-stream"


def format_sse(data: str) -> str:
    return f"data: {data}\n\n"


DONE_FRAME = format_sse("[DONE]")

# Pre-framed so the degraded path cannot fail on serialization itself
_FALLBACK_TERMINAL = (
    format_sse(ErrorEvent(error_text="An error occurred.").model_dump_json(by_alias=True))
    + format_sse(FinishEvent().model_dump_json(by_alias=True))
)


def encode_event(event: ProtocolEvent) -> str:
    """
    Frame one event.

    Raises:
        StreamAssemblyError: the event could not be serialized
    """
    try:
        payload = event.model_dump_json(by_alias=True, exclude_none=True)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise StreamAssemblyError(
            "Failed to serialize protocol event",
            details={"event_type": getattr(event, "type", None), "error": str(e)},
        ) from e
    return format_sse(payload)


async def encode_ui_message_stream(events: AsyncIterator[ProtocolEvent]) -> AsyncIterator[str]:
    """
    Frame an event stream for a StreamingResponse.

    An assembly failure closes the event source and ends the response with
    `error`, `finish` and `[DONE]` instead of an aborted connection.
    """
    async with aclosing(events) as source:
        try:
            async for event in source:
                yield encode_event(event)
        except StreamAssemblyError as e:
            chat_exchanges_total.labels(outcome="assembly_failed").inc()
            logger.error("Stream assembly failed", error=e.message, details=e.details)
            yield _FALLBACK_TERMINAL

    yield DONE_FRAME
