"""Custom Prometheus metrics for the PII chat service.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- chat_exchanges_total (high generation_failed ratio)
- pii_detection_failures_total (detector outages degrade redaction silently)
- pii_correlation_mismatches_total (placeholder numbering drifting from detector order)
- conversation_persist_failures_total (answers delivered but not saved)
"""

from prometheus_client import Counter, Histogram

# === Exchange Metrics ===

chat_exchanges_total = Counter(
    "chat_exchanges_total",
    "Total chat exchanges by outcome",
    ["outcome"],
)
"""
Chat exchange counter.

Labels:
- outcome: completed, generation_failed, detection_failed, assembly_failed
"""

# === Model Latency Metrics ===

generation_duration_seconds = Histogram(
    "generation_duration_seconds",
    "Time from stream open to the last generated chunk",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

detection_duration_seconds = Histogram(
    "detection_duration_seconds",
    "PII detection call latency in seconds",
    ["model", "success"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens consumed by model and type",
    ["model", "token_type"],
)
"""
Token consumption counter.

Labels:
- model: Model name
- token_type: prompt (input tokens), completion (output tokens)
"""

# === PII Metrics ===

pii_values_detected = Histogram(
    "pii_values_detected",
    "Number of PII spans returned by the detector per exchange",
    buckets=[0, 1, 2, 3, 5, 8, 13, 21],
)

pii_detection_failures_total = Counter(
    "pii_detection_failures_total",
    "Detection calls that failed, by error type",
    ["error_type"],
)

pii_correlation_mismatches_total = Counter(
    "pii_correlation_mismatches_total",
    "Answers whose placeholders do not line up with the detected PII list",
    ["reason"],
)
"""
Placeholder/detector correlation mismatches.

Labels:
- reason: index_out_of_range, unused_values, duplicate_values, placeholders_without_pii
"""

# === Persistence Metrics ===

conversation_persist_failures_total = Counter(
    "conversation_persist_failures_total",
    "Exchanges streamed successfully but not persisted",
)
