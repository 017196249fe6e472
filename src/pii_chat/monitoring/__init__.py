"""Monitoring and metrics instrumentation for the PII chat service.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from pii_chat.monitoring.metrics import (
    chat_exchanges_total,
    conversation_persist_failures_total,
    detection_duration_seconds,
    generation_duration_seconds,
    llm_tokens_total,
    pii_correlation_mismatches_total,
    pii_detection_failures_total,
    pii_values_detected,
)

__all__ = [
    "chat_exchanges_total",
    "generation_duration_seconds",
    "detection_duration_seconds",
    "llm_tokens_total",
    "pii_values_detected",
    "pii_detection_failures_total",
    "pii_correlation_mismatches_total",
    "conversation_persist_failures_total",
]
