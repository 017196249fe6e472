"""
Enumerations for the chat data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class TurnType(str, Enum):
    """
    Kind of a persisted chat turn.

    QUESTION turns are user-authored and never pass through the redaction
    renderer; ANSWER turns may carry $N placeholders and a pii list.
    """

    QUESTION = "question"
    ANSWER = "answer"


class MessageRole(str, Enum):
    """Role of a live protocol message (UI message stream)."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

    def to_turn_type(self) -> TurnType | None:
        """Map a conversational role onto a turn type (None for system)."""
        if self is MessageRole.USER:
            return TurnType.QUESTION
        if self is MessageRole.ASSISTANT:
            return TurnType.ANSWER
        return None
