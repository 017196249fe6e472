"""Chat pipeline: generation and detection adapters, orchestrator, SSE framing."""

from pii_chat.pipeline.detection import DetectionAdapter
from pii_chat.pipeline.exceptions import StreamAssemblyError
from pii_chat.pipeline.generation import GenerationAdapter, GenerationStream
from pii_chat.pipeline.orchestrator import ChatExchange, ChatOrchestrator, ExchangeState
from pii_chat.pipeline.sse import (
    DONE_FRAME,
    UI_MESSAGE_STREAM_HEADERS,
    encode_event,
    encode_ui_message_stream,
    format_sse,
)

__all__ = [
    "DetectionAdapter",
    "StreamAssemblyError",
    "GenerationAdapter",
    "GenerationStream",
    "ChatExchange",
    "ChatOrchestrator",
    "ExchangeState",
    "DONE_FRAME",
    "UI_MESSAGE_STREAM_HEADERS",
    "encode_event",
    "encode_ui_message_stream",
    "format_sse",
]
