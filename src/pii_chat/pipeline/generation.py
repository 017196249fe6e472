"""
Generation adapter: wraps the streamed call to the primary model.

`GenerationAdapter.generate()` opens the provider stream and returns a
`GenerationStream`, which is both
- a lazy, forward-only async iterator of protocol events
  (start-step, text-start, text-delta*, text-end, finish-step), and
- a future for the full generated text (`await stream.text()`), resolved
  once the last chunk has been consumed.
"""

import asyncio
import time
from typing import AsyncIterator
from uuid import uuid4

import structlog

from pii_chat.llm.base_client import BaseLLMClient, LLMTextStream
from pii_chat.llm.prompt_builder import PromptBuilder
from pii_chat.models.protocol import (
    FinishStepEvent,
    ProtocolEvent,
    StartStepEvent,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
)
from pii_chat.monitoring.metrics import generation_duration_seconds


logger = structlog.get_logger(__name__)


class GenerationStream:
    """
    Incremental output of one generation call.

    Not restartable: iterating a second time raises RuntimeError.
    """

    def __init__(self, chunks: LLMTextStream, model: str):
        self._chunks = chunks
        self._model = model
        self._part_id = f"text-{uuid4().hex}"
        self._text: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._consumed = False

    def __aiter__(self) -> AsyncIterator[ProtocolEvent]:
        if self._consumed:
            raise RuntimeError("GenerationStream can only be iterated once")
        self._consumed = True
        return self._events()

    async def text(self) -> str:
        """Full generated text; waits until the stream has been drained."""
        return await self._text

    async def aclose(self) -> None:
        """Release the provider stream without consuming it."""
        if not self._text.done():
            self._text.cancel()
        await self._chunks.aclose()

    async def _events(self) -> AsyncIterator[ProtocolEvent]:
        start_time = time.perf_counter()
        parts: list[str] = []

        try:
            yield StartStepEvent()
            yield TextStartEvent(id=self._part_id)

            async for chunk in self._chunks:
                parts.append(chunk)
                yield TextDeltaEvent(id=self._part_id, delta=chunk)

            yield TextEndEvent(id=self._part_id)

        except Exception as exc:
            generation_duration_seconds.labels(
                model=self._model, success="false"
            ).observe(time.perf_counter() - start_time)
            self._text.set_exception(exc)
            # The consumer sees the error through iteration already
            self._text.exception()
            raise
        finally:
            await self._chunks.aclose()

        text = "".join(parts)
        generation_duration_seconds.labels(
            model=self._model, success="true"
        ).observe(time.perf_counter() - start_time)
        logger.info(
            "Generation complete",
            model=self._model,
            chunks=len(parts),
            text_length=len(text),
        )
        self._text.set_result(text)

        yield FinishStepEvent()


class GenerationAdapter:
    """
    Streams answers from the generation model.

    The system instructions passed to `generate()` carry the placeholder
    convention ($1, $2, ... by first appearance, reused for repeats).
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        prompt_builder: PromptBuilder,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ):
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, system_instructions: str) -> GenerationStream:
        """
        Start a generation.

        The provider connection is established before returning, so a
        provider that is down raises ProviderError here, before any event
        exists.
        """
        request = self.prompt_builder.build_request(
            prompt=prompt,
            system=system_instructions,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=True,
        )
        chunks = await self.llm_client.open_stream(request)
        logger.debug("Generation stream opened", model=self.model)
        return GenerationStream(chunks, self.model)
