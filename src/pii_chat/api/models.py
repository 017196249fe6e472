"""
API-specific request and response models for FastAPI endpoints.

These wrap the core chat models (Conversation, UIMessage, RenderedTurn)
with listing, save and health envelopes.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pii_chat.models.chat_models import Conversation, UIMessage
from pii_chat.models.enums import TurnType
from pii_chat.redaction.renderer import RenderedTurn


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationSummary(BaseModel):
    """One entry of the conversation list."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    date: datetime
    message_count: int = Field(alias="messageCount", ge=0)
    preview: Optional[str] = Field(
        default=None,
        description="First question of the conversation",
    )

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationSummary":
        preview = next(
            (m.message for m in conversation.messages if m.type is TurnType.QUESTION),
            None,
        )
        return cls(
            id=conversation.id,
            date=conversation.date,
            message_count=len(conversation.messages),
            preview=preview,
        )


class ConversationListResponse(BaseModel):
    conversations: list[ConversationSummary]


class SaveConversationRequest(BaseModel):
    """Body of PUT /conversations/{id}: the client's live message list."""

    messages: list[UIMessage] = Field(default_factory=list)


class ConversationView(BaseModel):
    """Rendered turns of a stored conversation, PII masked."""

    id: UUID
    turns: list[RenderedTurn]


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy", "degraded", "unhealthy"]
    )
    version: str = Field(
        description="Service version",
        examples=["0.1.0"]
    )
    services: dict[str, str] = Field(
        description="Service-specific health status",
        examples=[{"ollama": "ok", "redis": "ok"}]
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="Health check timestamp (UTC)"
    )


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(
        description="Error code or type",
        examples=["not_found", "persistence_unavailable", "internal_error"]
    )
    message: str = Field(
        description="Human-readable error message"
    )
    details: Optional[dict] = Field(
        default=None,
        description="Additional error details"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="Error timestamp (UTC)"
    )
