"""
Exceptions raised while assembling the response stream.

Provider failures live in pii_chat.llm.exceptions; request validation
failures are pydantic ValidationErrors.
"""


class StreamAssemblyError(Exception):
    """
    Raised when a protocol event cannot be framed for the wire.

    The model calls have already succeeded when this happens; the SSE
    encoder answers it with a best-effort terminal sequence instead of
    crashing the response.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
