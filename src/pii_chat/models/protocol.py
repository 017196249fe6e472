"""
Protocol events of the UI message stream.

Each event is one `data: <JSON>` frame of the server-push response. The
orchestrator owns `start`, `message-metadata`, `error` and `finish`; the
step and text events are produced by the generation adapter and forwarded
untouched.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _ProtocolEventBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StartEvent(_ProtocolEventBase):
    type: Literal["start"] = "start"
    message_id: str = Field(..., alias="messageId")
    message_metadata: dict[str, Any] = Field(default_factory=dict, alias="messageMetadata")


class StartStepEvent(_ProtocolEventBase):
    type: Literal["start-step"] = "start-step"


class TextStartEvent(_ProtocolEventBase):
    type: Literal["text-start"] = "text-start"
    id: str


class TextDeltaEvent(_ProtocolEventBase):
    type: Literal["text-delta"] = "text-delta"
    id: str
    delta: str


class TextEndEvent(_ProtocolEventBase):
    type: Literal["text-end"] = "text-end"
    id: str


class FinishStepEvent(_ProtocolEventBase):
    type: Literal["finish-step"] = "finish-step"


class MessageMetadataEvent(_ProtocolEventBase):
    type: Literal["message-metadata"] = "message-metadata"
    message_metadata: dict[str, Any] = Field(..., alias="messageMetadata")


class ErrorEvent(_ProtocolEventBase):
    type: Literal["error"] = "error"
    error_text: str = Field(..., alias="errorText")


class FinishEvent(_ProtocolEventBase):
    type: Literal["finish"] = "finish"


ProtocolEvent = Annotated[
    Union[
        StartEvent,
        StartStepEvent,
        TextStartEvent,
        TextDeltaEvent,
        TextEndEvent,
        FinishStepEvent,
        MessageMetadataEvent,
        ErrorEvent,
        FinishEvent,
    ],
    Field(discriminator="type"),
]

protocol_event_adapter: TypeAdapter[ProtocolEvent] = TypeAdapter(ProtocolEvent)
"""Parses wire dicts back into events (used by clients and tests)."""
