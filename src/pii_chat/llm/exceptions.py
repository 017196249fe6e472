"""
Custom exceptions for the model provider layer.

Both the generation and the detection adapters talk to an inference server
through the clients in this package. Every failure they can raise is a
ProviderError so the orchestrator and the API layer can tell provider
failures apart from request validation and stream assembly problems.
"""


class ProviderError(Exception):
    """
    Base exception for all model provider errors.

    Provider calls are single-attempt: any ProviderError raised before the
    response stream is committed aborts the request.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class LLMConnectionError(ProviderError):
    """
    Raised when unable to connect to the inference server.

    Includes network errors, DNS failures, dropped streams, etc.
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """Raised when a request exceeds the configured timeout."""
    pass


class LLMGenerationError(ProviderError):
    """
    Raised when the inference server returns an error during generation.

    Examples:
    - GPU out of memory
    - Invalid parameters
    - Error line in the middle of a streamed response
    """
    pass


class LLMModelNotAvailableError(LLMGenerationError):
    """Raised when the requested model is not available on the server."""
    pass
