"""
PII text utilities.

- placeholders.py: `$N` placeholder codec (decode, correlation checks)
- spans.py: extraction of delimiter-wrapped spans from detector output
"""

from pii_chat.pii.placeholders import (
    CorrelationReport,
    PlaceholderToken,
    Segment,
    TextSegment,
    check_correlation,
    decode,
    encode,
    placeholder_indices,
)
from pii_chat.pii.spans import extract_delimited_spans

__all__ = [
    "CorrelationReport",
    "PlaceholderToken",
    "Segment",
    "TextSegment",
    "check_correlation",
    "decode",
    "encode",
    "placeholder_indices",
    "extract_delimited_spans",
]
