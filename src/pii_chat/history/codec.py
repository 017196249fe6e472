"""
History codec: converts between live UI messages and persisted chat turns.

Save direction keeps user/assistant messages only, joins their text parts
and carries the `pii` metadata patch along with the placeholder text.
Load direction hands each stored (message, pii) pair to the redaction
renderer, so the rendering after a reload matches the live one.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog
from pydantic import TypeAdapter, ValidationError

from pii_chat.models.chat_models import ChatTurn, ISODateTime, UIMessage
from pii_chat.redaction.renderer import RedactionRenderer, RenderedTurn


logger = structlog.get_logger(__name__)

_date_adapter = TypeAdapter(ISODateTime)


def _turn_id(message_id: str) -> uuid.UUID:
    """UUID ids are kept; other client ids map to a stable UUIDv5."""
    try:
        return uuid.UUID(message_id)
    except ValueError:
        return uuid.uuid5(uuid.NAMESPACE_URL, f"ui-message:{message_id}")


def _message_date(metadata: Optional[dict]) -> datetime:
    raw = (metadata or {}).get("date")
    if raw:
        try:
            return _date_adapter.validate_python(raw)
        except ValidationError:
            logger.debug("Ignoring unparseable message date")
    return datetime.now(timezone.utc)


def message_text(message: UIMessage) -> str:
    """Concatenate the text parts of a message, in order."""
    return "".join(p.text or "" for p in message.parts if p.type == "text")


def message_pii(message: UIMessage) -> list[str]:
    pii = (message.metadata or {}).get("pii")
    if not isinstance(pii, list):
        return []
    return [str(value) for value in pii]


def to_conversation_turns(messages: Sequence[UIMessage]) -> list[ChatTurn]:
    """
    Map live protocol messages onto persisted turns.

    - system (and any other non-conversational) roles are dropped
    - text parts are concatenated in order
    - `pii` is attached only when the metadata list is non-empty
    - messages without any text are skipped (a turn needs a message)
    """
    turns: list[ChatTurn] = []

    for message in messages:
        turn_type = message.role.to_turn_type()
        if turn_type is None:
            continue

        text = message_text(message)
        if not text:
            logger.debug("Skipping message without text", message_id=message.id)
            continue

        pii = message_pii(message)
        turns.append(
            ChatTurn(
                id=_turn_id(message.id),
                date=_message_date(message.metadata),
                message=text,
                type=turn_type,
                pii=pii or None,
            )
        )

    return turns


def from_conversation_turns(
    turns: Sequence[ChatTurn],
    renderer: RedactionRenderer,
) -> list[RenderedTurn]:
    """Render stored turns exactly as the live view would."""
    return [renderer.render_turn(turn) for turn in turns]
