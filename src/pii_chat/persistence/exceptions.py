"""Exceptions raised by the conversation store."""


class PersistenceError(Exception):
    """Raised when the conversation store cannot be read or written."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConversationNotFound(Exception):
    """Raised when a conversation id has no stored record."""
    def __init__(self, conversation_id):
        self.conversation_id = conversation_id
        self.message = f"Conversation not found: {conversation_id}"
        self.details = {"conversation_id": str(conversation_id)}
        super().__init__(self.message)


class CorruptConversationRecord(PersistenceError):
    """Raised when a stored record no longer parses as a Conversation."""
    pass
