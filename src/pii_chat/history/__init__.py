"""Conversation history: UI message codec and explicit sessions."""

from pii_chat.history.codec import (
    from_conversation_turns,
    message_pii,
    message_text,
    to_conversation_turns,
)
from pii_chat.history.session import ConversationSession, SessionManager

__all__ = [
    "from_conversation_turns",
    "message_pii",
    "message_text",
    "to_conversation_turns",
    "ConversationSession",
    "SessionManager",
]
