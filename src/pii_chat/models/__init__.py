"""
Pydantic data models for the PII chat service.

Includes:
- Enums (TurnType, MessageRole)
- Chat models (ChatRequest, ChatTurn, Conversation, UIMessage)
- Protocol events (StartEvent, TextDeltaEvent, MessageMetadataEvent, ...)
- LLM models (LLMGenerationRequest, LLMGenerationResponse)
"""

from pii_chat.models.enums import MessageRole, TurnType
from pii_chat.models.chat_models import (
    ChatRequest,
    ChatTurn,
    Conversation,
    UIMessage,
    UIMessagePart,
)
from pii_chat.models.protocol import (
    ErrorEvent,
    FinishEvent,
    FinishStepEvent,
    MessageMetadataEvent,
    ProtocolEvent,
    StartEvent,
    StartStepEvent,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
    protocol_event_adapter,
)
from pii_chat.models.llm_models import LLMGenerationRequest, LLMGenerationResponse

__all__ = [
    # Enums
    "MessageRole",
    "TurnType",
    # Chat models
    "ChatRequest",
    "ChatTurn",
    "Conversation",
    "UIMessage",
    "UIMessagePart",
    # Protocol events
    "ProtocolEvent",
    "StartEvent",
    "StartStepEvent",
    "TextStartEvent",
    "TextDeltaEvent",
    "TextEndEvent",
    "FinishStepEvent",
    "MessageMetadataEvent",
    "ErrorEvent",
    "FinishEvent",
    "protocol_event_adapter",
    # LLM models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]
