"""
Stream orchestrator: sequences the generation and detection calls of one
chat exchange onto a single ordered event stream.

Per request:
    Idle -> Started -> Streaming -> Detecting -> MetadataEmitted -> Done

1. `start` (answer id, date, type=answer, conversation id) before any
   generation output
2. generation events forwarded untouched, in the adapter's order
3. once the full text is known, detection runs over the ORIGINAL input
4. exactly one `message-metadata` with `{pii: [...]}`
5. `finish`; the transport closes the channel, then `persist()` saves the
   question and answer turns

Generation failing to connect raises from `open()`, before anything is
committed. Failures after `start` end the stream with `error` + `finish`
and nothing is persisted. Detection failures degrade to an empty PII list
unless PII_DETECTION_FAIL_OPEN is off.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Optional
from uuid import UUID, uuid4

import structlog

from pii_chat.config import Settings
from pii_chat.history.codec import to_conversation_turns
from pii_chat.history.session import SessionManager
from pii_chat.llm.exceptions import ProviderError
from pii_chat.llm.prompt_builder import PromptBuilder
from pii_chat.models.chat_models import ChatRequest, UIMessage, UIMessagePart
from pii_chat.models.enums import MessageRole
from pii_chat.models.protocol import (
    ErrorEvent,
    FinishEvent,
    MessageMetadataEvent,
    ProtocolEvent,
    StartEvent,
)
from pii_chat.monitoring.metrics import (
    chat_exchanges_total,
    conversation_persist_failures_total,
    pii_correlation_mismatches_total,
)
from pii_chat.pii.placeholders import check_correlation
from pii_chat.pipeline.detection import DetectionAdapter
from pii_chat.pipeline.generation import GenerationAdapter, GenerationStream


logger = structlog.get_logger(__name__)

GENERIC_ERROR_TEXT = "An error occurred."


class ExchangeState(str, Enum):
    IDLE = "idle"
    STARTED = "started"
    STREAMING = "streaming"
    DETECTING = "detecting"
    METADATA_EMITTED = "metadata_emitted"
    DONE = "done"
    FAILED = "failed"


class ChatExchange:
    """
    One question/answer exchange.

    `events()` may be consumed once; `persist()` is a no-op unless the
    stream reached Done.
    """

    def __init__(
        self,
        request: ChatRequest,
        conversation_id: UUID,
        stream: GenerationStream,
        detection: DetectionAdapter,
        sessions: SessionManager,
        fail_open: bool = True,
    ):
        self.request = request
        self.conversation_id = conversation_id
        self.answer_id = uuid4()
        self.answer_date = datetime.now(timezone.utc)
        self.state = ExchangeState.IDLE

        self.answer_text: Optional[str] = None
        self.pii: Optional[list[str]] = None

        self._stream = stream
        self._detection = detection
        self._sessions = sessions
        self._fail_open = fail_open
        self._log = logger.bind(
            conversation_id=str(conversation_id),
            question_id=str(request.id),
            answer_id=str(self.answer_id),
        )

    def _transition(self, state: ExchangeState) -> None:
        self._log.debug("Exchange state", previous=self.state.value, state=state.value)
        self.state = state

    def _fail(self, outcome: str, error_text: str) -> list[ProtocolEvent]:
        self._transition(ExchangeState.FAILED)
        chat_exchanges_total.labels(outcome=outcome).inc()
        return [ErrorEvent(error_text=error_text), FinishEvent()]

    def start_event(self) -> StartEvent:
        return StartEvent(
            message_id=str(self.answer_id),
            message_metadata={
                "id": str(self.answer_id),
                "date": self.answer_date.isoformat(),
                "type": "answer",
                "conversationId": str(self.conversation_id),
            },
        )

    async def events(self) -> AsyncIterator[ProtocolEvent]:
        if self.state is not ExchangeState.IDLE:
            raise RuntimeError("Exchange events can only be consumed once")

        try:
            self._transition(ExchangeState.STARTED)
            yield self.start_event()

            self._transition(ExchangeState.STREAMING)
            try:
                async for event in self._stream:
                    yield event
                text = await self._stream.text()
            except ProviderError as e:
                self._log.error("Generation failed mid-stream", error=e.message, details=e.details)
                for event in self._fail("generation_failed", e.message):
                    yield event
                return
            except Exception:
                self._log.exception("Generation stream crashed")
                for event in self._fail("generation_failed", GENERIC_ERROR_TEXT):
                    yield event
                return

            self._transition(ExchangeState.DETECTING)
            try:
                pii = await self._detection.detect(self.request.message)
            except Exception as e:
                error_text = e.message if isinstance(e, ProviderError) else GENERIC_ERROR_TEXT
                if not self._fail_open:
                    self._log.error(
                        "PII detection failed",
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    for event in self._fail("detection_failed", error_text):
                        yield event
                    return
                self._log.warning(
                    "PII detection failed, continuing without PII",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                pii = []

            self._report_correlation(text, pii)

            self.answer_text = text
            self.pii = pii
            yield MessageMetadataEvent(message_metadata={"pii": pii})
            self._transition(ExchangeState.METADATA_EMITTED)

            yield FinishEvent()
            self._transition(ExchangeState.DONE)
            chat_exchanges_total.labels(outcome="completed").inc()
            self._log.info("Exchange complete", pii_count=len(pii), text_length=len(text))
        finally:
            if self.state is not ExchangeState.DONE:
                await self._stream.aclose()

    def _report_correlation(self, text: str, pii: list[str]) -> None:
        report = check_correlation(text, pii)
        if report.consistent:
            return

        for reason in report.reasons:
            pii_correlation_mismatches_total.labels(reason=reason).inc()
        self._log.warning(
            "Placeholders do not line up with detected PII",
            reasons=report.reasons,
            placeholder_count=report.placeholder_count,
            value_count=report.value_count,
            out_of_range=report.out_of_range,
            unused_values=report.unused_values,
        )

    def ui_messages(self) -> list[UIMessage]:
        """The exchange as the two live messages a chat client would hold."""
        return [
            UIMessage(
                id=str(self.request.id),
                role=MessageRole.USER,
                parts=[UIMessagePart(type="text", text=self.request.message)],
                metadata={"date": self.request.date.isoformat()},
            ),
            UIMessage(
                id=str(self.answer_id),
                role=MessageRole.ASSISTANT,
                parts=[UIMessagePart(type="text", text=self.answer_text or "")],
                metadata={"date": self.answer_date.isoformat(), "pii": self.pii or []},
            ),
        ]

    async def persist(self) -> None:
        """
        Save the question and answer turns into the conversation.

        Runs after the stream has been delivered; failures are logged and
        counted, never raised.
        """
        if self.state is not ExchangeState.DONE:
            self._log.info("Exchange not persisted", state=self.state.value)
            return

        try:
            session = await self._sessions.open(self.conversation_id)
            try:
                session.append(*to_conversation_turns(self.ui_messages()))
                conversation = await session.commit()
            finally:
                session.close()
        except Exception:
            conversation_persist_failures_total.inc()
            self._log.exception("Failed to persist exchange")
            return

        self._log.info("Exchange persisted", message_count=len(conversation.messages))


class ChatOrchestrator:
    """Builds a ChatExchange per validated request."""

    def __init__(
        self,
        generation: GenerationAdapter,
        detection: DetectionAdapter,
        prompt_builder: PromptBuilder,
        sessions: SessionManager,
        settings: Settings,
    ):
        self.generation = generation
        self.detection = detection
        self.prompt_builder = prompt_builder
        self.sessions = sessions
        self.fail_open = settings.PII_DETECTION_FAIL_OPEN

    async def open(self, request: ChatRequest) -> ChatExchange:
        """
        Open the generation stream for `request`.

        Raises:
            ProviderError: the generation provider could not be reached;
                no event has been produced
        """
        conversation_id = request.conversation_id or uuid4()

        try:
            stream = await self.generation.generate(
                request.message,
                self.prompt_builder.build_generation_system_prompt(),
            )
        except ProviderError as e:
            chat_exchanges_total.labels(outcome="generation_failed").inc()
            logger.error(
                "Generation failed before streaming",
                conversation_id=str(conversation_id),
                error=e.message,
                details=e.details,
            )
            raise

        logger.info(
            "Exchange opened",
            conversation_id=str(conversation_id),
            question_id=str(request.id),
            message_length=len(request.message),
        )
        return ChatExchange(
            request=request,
            conversation_id=conversation_id,
            stream=stream,
            detection=self.detection,
            sessions=self.sessions,
            fail_open=self.fail_open,
        )
