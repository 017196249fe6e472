"""
LLM client abstraction and implementations.

Components:
- BaseLLMClient / LLMTextStream: Abstract client and streamed response
- OllamaClient: Implementation for Ollama inference server
- PromptBuilder: Renders the generation and detection system prompts
- exceptions: ProviderError hierarchy
"""

from pii_chat.llm.base_client import BaseLLMClient, LLMTextStream
from pii_chat.llm.ollama_client import OllamaClient, OllamaTextStream
from pii_chat.llm.prompt_builder import PromptBuilder
from pii_chat.llm.exceptions import (
    ProviderError,
    LLMConnectionError,
    LLMGenerationError,
    LLMTimeoutError,
    LLMModelNotAvailableError,
)

__all__ = [
    "BaseLLMClient",
    "LLMTextStream",
    "OllamaClient",
    "OllamaTextStream",
    "PromptBuilder",
    "ProviderError",
    "LLMConnectionError",
    "LLMGenerationError",
    "LLMTimeoutError",
    "LLMModelNotAvailableError",
]
