"""
Chat data models: request body, persisted turns and conversations, and the
live UI messages the history codec consumes.

Wire names are camelCase (`messageIds`, `conversationId`); models accept
both the alias and the Python field name.
"""

from datetime import datetime
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)

from pii_chat.models.enums import MessageRole, TurnType


def _require_iso_string(value: Any) -> Any:
    """Only ISO-8601 strings are accepted on the wire (no epoch numbers)."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or "T" not in value:
        raise ValueError("Invalid datetime: expected an ISO-8601 string")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError("Invalid datetime: expected an ISO-8601 string")


ISODateTime = Annotated[datetime, BeforeValidator(_require_iso_string)]


class ChatRequest(BaseModel):
    """
    Body of POST /api/chat.

    `conversationId` names the conversation the exchange is saved into; a
    new one is minted when it is missing.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: UUID = Field(..., description="Identifier of the question turn")
    date: ISODateTime = Field(..., description="ISO-8601 submission timestamp")
    message: str = Field(..., min_length=1, description="Raw user input")
    type: TurnType = Field(..., description="Turn type of the submitted message")
    conversation_id: Optional[UUID] = Field(
        default=None,
        alias="conversationId",
        description="Conversation to append the exchange to",
    )


class ChatTurn(BaseModel):
    """
    One persisted message of a conversation.

    `pii` is present only when non-empty; placeholder `$k` in `message`
    stands for `pii[k-1]`.
    """

    model_config = ConfigDict(extra="ignore")

    id: UUID
    date: ISODateTime
    message: str = Field(..., min_length=1)
    type: TurnType
    pii: Optional[list[str]] = None

    @field_validator("pii")
    @classmethod
    def empty_pii_is_absent(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return value or None

    @model_serializer(mode="wrap")
    def _omit_absent_pii(self, handler):
        data = handler(self)
        if not data.get("pii"):
            data.pop("pii", None)
        return data


class Conversation(BaseModel):
    """
    Persisted conversation record.

    `messageIds[i]` always equals `messages[i].id`; when the id list is not
    supplied it is derived from the messages.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: UUID
    date: ISODateTime
    messages: list[ChatTurn] = Field(default_factory=list)
    message_ids: list[UUID] = Field(default_factory=list, alias="messageIds")

    @model_validator(mode="before")
    @classmethod
    def derive_message_ids(cls, data: Any) -> Any:
        if isinstance(data, dict) and "messageIds" not in data and "message_ids" not in data:
            data = dict(data)
            data["messageIds"] = [
                m.id if isinstance(m, ChatTurn) else m.get("id")
                for m in data.get("messages", [])
            ]
        return data

    @model_validator(mode="after")
    def check_message_ids(self) -> "Conversation":
        if self.message_ids != [m.id for m in self.messages]:
            raise ValueError("messageIds must mirror the ids of messages, in order")
        return self


class UIMessagePart(BaseModel):
    """One part of a live UI message; only `text` parts carry content we keep."""

    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None


class UIMessage(BaseModel):
    """
    Live protocol message as held by the chat client.

    Ids are opaque strings; metadata carries the `pii` patch and, for
    messages started by the server, the `date` of the `start` event.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    role: MessageRole
    parts: list[UIMessagePart] = Field(default_factory=list)
    metadata: Optional[dict[str, Any]] = None
