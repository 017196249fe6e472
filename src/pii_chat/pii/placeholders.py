"""
Placeholder codec for `$N` tokens in generated text.

The generation model encodes: it writes `$1`, `$2`, ... in place of the PII
values it saw, numbering by first appearance. This module only decodes:
it splits a text on the placeholders and resolves each one against the
detected value list (`$k` -> `values[k-1]`).
"""

import re
from typing import Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict

PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")


class TextSegment(BaseModel):
    """Literal text, rendered as-is."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class PlaceholderToken(BaseModel):
    """A placeholder that resolved to a detected PII value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pii"] = "pii"
    index: int
    placeholder: str
    value: str


Segment = Union[TextSegment, PlaceholderToken]


def placeholder_indices(text: str) -> list[int]:
    """All placeholder indices in order of appearance (repeats kept)."""
    return [int(m.group(1)) for m in PLACEHOLDER_PATTERN.finditer(text)]


def decode(text: str, values: Sequence[str]) -> list[Segment]:
    """
    Split `text` into literal segments and resolved placeholder tokens.

    A placeholder whose index has no value (including `$0`) stays part of
    the surrounding literal text. Adjacent literal text is merged, so a
    text without resolvable placeholders decodes to a single segment.
    Never raises.

    Examples:
        >>> decode("Hello $1!", ["John Doe"])
        [TextSegment(text='Hello '), PlaceholderToken(index=1, ...), TextSegment(text='!')]
        >>> decode("Costs $5", [])
        [TextSegment(text='Costs $5')]
    """
    segments: list[Segment] = []
    cursor = 0

    for match in PLACEHOLDER_PATTERN.finditer(text):
        index = int(match.group(1))
        if not 1 <= index <= len(values):
            continue

        if match.start() > cursor:
            segments.append(TextSegment(text=text[cursor:match.start()]))
        segments.append(
            PlaceholderToken(index=index, placeholder=match.group(0), value=values[index - 1])
        )
        cursor = match.end()

    if cursor < len(text):
        segments.append(TextSegment(text=text[cursor:]))

    return segments


def encode(segments: Sequence[Segment]) -> str:
    """Inverse of decode: put the placeholders back in place of the values."""
    return "".join(
        s.placeholder if isinstance(s, PlaceholderToken) else s.text
        for s in segments
    )


class CorrelationReport(BaseModel):
    """How well an answer's placeholders line up with the detected values."""

    placeholder_count: int
    distinct_indices: list[int]
    value_count: int
    out_of_range: list[int]
    unused_values: list[int]
    duplicate_values: list[str]

    @property
    def consistent(self) -> bool:
        return not self.reasons

    @property
    def reasons(self) -> list[str]:
        reasons = []
        if self.out_of_range:
            reasons.append("index_out_of_range")
        if self.unused_values:
            reasons.append("unused_values")
        if self.duplicate_values:
            reasons.append("duplicate_values")
        if self.distinct_indices and not self.value_count:
            reasons.append("placeholders_without_pii")
        return reasons


def check_correlation(text: str, values: Sequence[str]) -> CorrelationReport:
    """
    Compare the placeholders of a generated text with a detected value list.

    The generator numbers distinct values and reuses numbers for repeats,
    while the detector lists every occurrence. The report flags:
    - placeholders pointing past the end of the list,
    - list positions no placeholder refers to,
    - values the detector listed more than once (these shift later indices).

    A text without placeholders is never flagged: the detector may find PII
    the answer simply does not repeat.
    """
    indices = placeholder_indices(text)
    distinct = sorted(set(indices))
    out_of_range = [i for i in distinct if not 1 <= i <= len(values)]

    unused: list[int] = []
    if distinct:
        unused = [i for i in range(1, len(values) + 1) if i not in distinct]

    seen: set[str] = set()
    duplicates: list[str] = []
    if distinct:
        for value in values:
            if value in seen and value not in duplicates:
                duplicates.append(value)
            seen.add(value)

    return CorrelationReport(
        placeholder_count=len(indices),
        distinct_indices=distinct,
        value_count=len(values),
        out_of_range=out_of_range,
        unused_values=unused,
        duplicate_values=duplicates,
    )
