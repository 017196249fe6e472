"""
FastAPI dependency injection for the chat service.

Provides singleton instances of expensive resources (LLM client, prompt
builder, renderer) and factory functions for pipeline components.

Cached getters take no arguments: Settings instances are not hashable, so
they read `get_settings()` themselves instead of receiving it from Depends.
"""

from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from pii_chat.config import Settings, settings
from pii_chat.history.session import SessionManager
from pii_chat.llm.base_client import BaseLLMClient
from pii_chat.llm.ollama_client import OllamaClient
from pii_chat.llm.prompt_builder import PromptBuilder
from pii_chat.persistence.redis_client import RedisClient
from pii_chat.persistence.repository import ConversationRepository
from pii_chat.pipeline.detection import DetectionAdapter
from pii_chat.pipeline.generation import GenerationAdapter
from pii_chat.pipeline.orchestrator import ChatOrchestrator
from pii_chat.redaction.renderer import RedactionRenderer


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.

    Returns:
        Settings instance
    """
    return settings


@lru_cache()
def get_llm_client() -> BaseLLMClient:
    """
    Get singleton LLM client with connection pooling.

    Both models are served by the same Ollama instance, so generation and
    detection share one client and its connection pool. Closed on shutdown.
    """
    config = get_settings()
    return OllamaClient(
        base_url=config.OLLAMA_BASE_URL,
        timeout=config.OLLAMA_TIMEOUT,
    )


@lru_cache()
def get_prompt_builder() -> PromptBuilder:
    """
    Get singleton prompt builder.

    Loads Jinja2 templates once and reuses them across requests.
    """
    config = get_settings()
    return PromptBuilder(
        templates_dir=Path(config.PROMPT_TEMPLATES_DIR),
        open_delimiter=config.PII_DELIMITER_OPEN,
        close_delimiter=config.PII_DELIMITER_CLOSE,
    )


@lru_cache()
def get_renderer() -> RedactionRenderer:
    return RedactionRenderer(mask=get_settings().REDACTION_MASK)


def get_generation_adapter(
    llm_client: BaseLLMClient = Depends(get_llm_client),
    prompt_builder: PromptBuilder = Depends(get_prompt_builder),
    settings: Settings = Depends(get_settings),
) -> GenerationAdapter:
    return GenerationAdapter(
        llm_client=llm_client,
        prompt_builder=prompt_builder,
        model=settings.GENERATION_MODEL,
        temperature=settings.GENERATION_TEMPERATURE,
        max_tokens=settings.GENERATION_MAX_TOKENS,
    )


def get_detection_adapter(
    llm_client: BaseLLMClient = Depends(get_llm_client),
    prompt_builder: PromptBuilder = Depends(get_prompt_builder),
    settings: Settings = Depends(get_settings),
) -> DetectionAdapter:
    return DetectionAdapter(
        llm_client=llm_client,
        prompt_builder=prompt_builder,
        model=settings.DETECTION_MODEL,
        temperature=settings.DETECTION_TEMPERATURE,
        max_tokens=settings.DETECTION_MAX_TOKENS,
    )


def get_repository(
    settings: Settings = Depends(get_settings),
) -> ConversationRepository:
    """
    Create conversation repository over the shared async Redis pool.

    Args:
        settings: Application settings (injected)

    Returns:
        ConversationRepository instance
    """
    redis_client = RedisClient.get_async_client(settings)
    return ConversationRepository(redis_client, settings)


def get_session_manager(
    repository: ConversationRepository = Depends(get_repository),
) -> SessionManager:
    return SessionManager(repository)


def get_orchestrator(
    generation: GenerationAdapter = Depends(get_generation_adapter),
    detection: DetectionAdapter = Depends(get_detection_adapter),
    prompt_builder: PromptBuilder = Depends(get_prompt_builder),
    sessions: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings),
) -> ChatOrchestrator:
    """
    Create the orchestrator for one request.

    Note: not cached; it is lightweight and all heavy resources
    (client, builder, Redis pool) are singletons.
    """
    return ChatOrchestrator(
        generation=generation,
        detection=detection,
        prompt_builder=prompt_builder,
        sessions=sessions,
        settings=settings,
    )
