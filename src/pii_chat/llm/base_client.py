"""
Abstract base client for LLM inference.

Defines the interface that all inference client implementations must
adhere to. The generation adapter uses the streaming half of the interface,
the detection adapter the one-shot half.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator
import structlog

from pii_chat.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class LLMTextStream(ABC):
    """
    Open streaming response from an inference server.

    Yields text chunks in the order the server produces them. The stream is
    forward-only and must be closed with `aclose()` (iteration closes it on
    exhaustion or error).
    """

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[str]:
        ...

    @abstractmethod
    async def aclose(self) -> None:
        ...


class BaseLLMClient(ABC):
    """
    Abstract base class for LLM inference clients.

    Responsibilities:
    - Send one-shot and streamed generation requests to the inference server
    - Parse responses into standardized format
    - Map transport failures onto ProviderError subclasses
    - Provide a health check

    Does NOT handle:
    - Prompt construction (that's PromptBuilder's job)
    - PII span extraction (that's the detection adapter's job)
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 60,
        **kwargs
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL of LLM inference server (e.g., http://ollama:11434)
            timeout: Request timeout in seconds
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized LLM client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout
        )

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Generate a complete (non-streamed) response.

        Raises:
            LLMConnectionError: Network errors
            LLMTimeoutError: Request exceeded timeout
            LLMGenerationError: Server-side generation errors
            LLMModelNotAvailableError: Model not found
        """
        pass

    @abstractmethod
    async def open_stream(self, request: LLMGenerationRequest) -> LLMTextStream:
        """
        Open a streamed generation.

        The HTTP exchange is started before this method returns, so
        connection failures and error status codes surface here, before any
        text chunk is consumed. Failures during iteration surface from the
        returned stream.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the inference server is healthy and reachable.

        Note:
            This should NOT raise exceptions - return False on error.
        """
        pass

    async def close(self):
        """
        Close client connections and cleanup resources.

        Default implementation does nothing.
        """
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
