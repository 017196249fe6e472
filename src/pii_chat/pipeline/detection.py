"""
Detection adapter: wraps the one-shot call to the secondary model.

The detector is asked to echo the text with every PII span wrapped in
delimiter markers; the spans are then parsed out in order of appearance.
"""

import time

import structlog

from pii_chat.llm.base_client import BaseLLMClient
from pii_chat.llm.prompt_builder import PromptBuilder
from pii_chat.monitoring.metrics import (
    detection_duration_seconds,
    pii_detection_failures_total,
    pii_values_detected,
)
from pii_chat.pii.spans import extract_delimited_spans


logger = structlog.get_logger(__name__)


class DetectionAdapter:
    """Finds PII spans in raw user input with the detection model."""

    def __init__(
        self,
        llm_client: BaseLLMClient,
        prompt_builder: PromptBuilder,
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ):
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def detect(self, raw_text: str) -> list[str]:
        """
        Detect PII in `raw_text`.

        Returns:
            Every delimited span of the detector's response, in order,
            duplicates included. Empty when the response has no delimiters.

        Raises:
            ProviderError: the detection call failed
        """
        request = self.prompt_builder.build_request(
            prompt=raw_text,
            system=self.prompt_builder.build_detection_system_prompt(),
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        start_time = time.perf_counter()
        try:
            response = await self.llm_client.generate(request)
        except Exception as e:
            detection_duration_seconds.labels(
                model=self.model, success="false"
            ).observe(time.perf_counter() - start_time)
            pii_detection_failures_total.labels(error_type=type(e).__name__).inc()
            raise

        detection_duration_seconds.labels(
            model=self.model, success="true"
        ).observe(time.perf_counter() - start_time)

        spans = extract_delimited_spans(
            response.content,
            self.prompt_builder.open_delimiter,
            self.prompt_builder.close_delimiter,
        )
        pii_values_detected.observe(len(spans))

        logger.info(
            "PII detection complete",
            model=response.model_version,
            spans_found=len(spans),
            latency_ms=response.latency_ms,
        )
        return spans
