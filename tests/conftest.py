"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Optional, Sequence

import pytest

from pii_chat.config import Settings
from pii_chat.llm.base_client import BaseLLMClient, LLMTextStream
from pii_chat.llm.exceptions import ProviderError
from pii_chat.llm.prompt_builder import PromptBuilder
from pii_chat.models.chat_models import ChatRequest, ChatTurn, Conversation
from pii_chat.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from pii_chat.models.enums import TurnType
from pii_chat.redaction.renderer import RedactionRenderer

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def templates_dir() -> Path:
    """Prompt templates shipped with the service."""
    return PROJECT_ROOT / "config" / "prompts"


@pytest.fixture
def test_settings(templates_dir: Path) -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.PII_DETECTION_FAIL_OPEN = False
    """
    return Settings(
        # === Application ===
        APP_NAME="PII Chat (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Ollama ===
        OLLAMA_BASE_URL="http://localhost:11434",
        OLLAMA_TIMEOUT=30,
        GENERATION_MODEL="qwen2.5:7b",
        DETECTION_MODEL="qwen2.5:3b",

        # === PII ===
        PII_DETECTION_FAIL_OPEN=True,
        PROMPT_TEMPLATES_DIR=str(templates_dir),

        # === Redis ===
        REDIS_URL="redis://localhost:6379/0",
        REDIS_MAX_CONNECTIONS=10,

        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def prompt_builder(templates_dir: Path) -> PromptBuilder:
    return PromptBuilder(templates_dir=templates_dir)


@pytest.fixture
def renderer() -> RedactionRenderer:
    return RedactionRenderer(mask="██████")


@pytest.fixture
def chat_request() -> ChatRequest:
    """The canonical exchange: a question that names a person."""
    return ChatRequest(
        id=uuid.uuid4(),
        date=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
        message="My name is John Doe",
        type=TurnType.QUESTION,
    )


@pytest.fixture
def create_turn():
    """Factory fixture to create ChatTurn instances.

    Usage:
        def test_something(create_turn):
            turn = create_turn("Hello $1!", TurnType.ANSWER, pii=["John Doe"])
    """
    def _create(
        message: str = "Hello",
        turn_type: TurnType = TurnType.QUESTION,
        pii: list[str] | None = None,
        date: datetime | None = None,
    ) -> ChatTurn:
        return ChatTurn(
            id=uuid.uuid4(),
            date=date or datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
            message=message,
            type=turn_type,
            pii=pii,
        )

    return _create


class FakeTextStream(LLMTextStream):
    """Yields canned chunks; optionally raises after `fail_after` chunks."""

    def __init__(
        self,
        chunks: Sequence[str],
        fail_after: Optional[int] = None,
        error: Optional[Exception] = None,
    ):
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.error = error or ProviderError("stream dropped")
        self.closed = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise self.error
            yield chunk
        if self.fail_after is not None and self.fail_after >= len(self.chunks):
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


class FakeLLMClient(BaseLLMClient):
    """
    Scripted model server.

    `open_stream` serves `stream_chunks` (or raises `stream_error`);
    `generate` answers with `detection_output` (or raises `generate_error`).
    Every request is recorded.
    """

    def __init__(
        self,
        stream_chunks: Sequence[str] = (),
        detection_output: str = "No PII detected.",
        stream_error: Optional[Exception] = None,
        generate_error: Optional[Exception] = None,
        fail_after: Optional[int] = None,
    ):
        super().__init__(base_url="http://fake-ollama:11434", timeout=5)
        self.stream_chunks = list(stream_chunks)
        self.detection_output = detection_output
        self.stream_error = stream_error
        self.generate_error = generate_error
        self.fail_after = fail_after
        self.requests: list[LLMGenerationRequest] = []
        self.streams: list[FakeTextStream] = []

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        self.requests.append(request)
        if self.generate_error is not None:
            raise self.generate_error
        return LLMGenerationResponse(
            content=self.detection_output,
            model_version=request.model,
            finish_reason="stop",
            latency_ms=12,
        )

    async def open_stream(self, request: LLMGenerationRequest) -> FakeTextStream:
        self.requests.append(request)
        if self.stream_error is not None:
            raise self.stream_error
        stream = FakeTextStream(self.stream_chunks, fail_after=self.fail_after)
        self.streams.append(stream)
        return stream

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def fake_llm_client():
    """Factory for scripted model clients."""
    def _create(**kwargs) -> FakeLLMClient:
        return FakeLLMClient(**kwargs)

    return _create


class InMemoryConversationRepository:
    """Dict-backed stand-in for ConversationRepository (same async interface)."""

    def __init__(self):
        self.records: dict[uuid.UUID, Conversation] = {}

    async def save(self, conversation: Conversation) -> None:
        self.records[conversation.id] = conversation

    async def get(self, conversation_id) -> Optional[Conversation]:
        return self.records.get(uuid.UUID(str(conversation_id)))

    async def list_recent(self, limit: int = 50) -> list[Conversation]:
        ordered = sorted(self.records.values(), key=lambda c: c.date, reverse=True)
        return ordered[:limit]

    async def delete(self, conversation_id) -> bool:
        return self.records.pop(uuid.UUID(str(conversation_id)), None) is not None

    async def ping(self) -> bool:
        return True


@pytest.fixture
def memory_repository() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()
