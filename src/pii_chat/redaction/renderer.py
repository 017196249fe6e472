"""
Redaction renderer: turns answer text plus its PII list into masked,
click-to-reveal tokens.

Redaction is presentational only. Every resolved placeholder becomes a
token that shows a fixed mask by default; revealing it is a client-side
toggle that never touches the stored turn.
"""

from pathlib import Path
from typing import Literal, Sequence, Union
from uuid import UUID

import structlog
from jinja2 import Environment, FileSystemLoader
from pydantic import BaseModel, ConfigDict

from pii_chat.models.chat_models import ChatTurn
from pii_chat.models.enums import TurnType
from pii_chat.pii.placeholders import PlaceholderToken, TextSegment, decode


logger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


class RedactedToken(BaseModel):
    """A resolved placeholder as displayed: masked until revealed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pii"] = "pii"
    index: int
    placeholder: str
    value: str
    mask: str


RenderedSegment = Union[TextSegment, RedactedToken]


class RenderedTurn(BaseModel):
    """A stored turn ready for display."""

    id: UUID
    type: TurnType
    segments: list[RenderedSegment]

    @property
    def tokens(self) -> list[RedactedToken]:
        return [s for s in self.segments if isinstance(s, RedactedToken)]


class RedactionRenderer:
    """
    Render chat turns with their PII masked.

    Question turns are user-authored and pass through as one literal
    segment. Answer turns are decoded against their `pii` list; only
    placeholders drive tokens, so an answer without placeholders renders
    unchanged whatever the list holds.
    """

    def __init__(self, mask: str = "██████", templates_dir: Path = TEMPLATES_DIR):
        self.mask = mask
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.jinja_env.get_template("conversation.html.j2")

    def render_segments(self, text: str, values: Sequence[str]) -> list[RenderedSegment]:
        segments: list[RenderedSegment] = []
        for segment in decode(text, values):
            if isinstance(segment, PlaceholderToken):
                segments.append(
                    RedactedToken(
                        index=segment.index,
                        placeholder=segment.placeholder,
                        value=segment.value,
                        mask=self.mask,
                    )
                )
            else:
                segments.append(segment)
        return segments

    def render_turn(self, turn: ChatTurn) -> RenderedTurn:
        if turn.type is TurnType.QUESTION:
            segments: list[RenderedSegment] = [TextSegment(text=turn.message)]
        else:
            segments = self.render_segments(turn.message, turn.pii or [])

        return RenderedTurn(id=turn.id, type=turn.type, segments=segments)

    @staticmethod
    def masked_text(segments: Sequence[RenderedSegment]) -> str:
        """Plain-text view with every token shown as its mask."""
        return "".join(
            s.mask if isinstance(s, RedactedToken) else s.text
            for s in segments
        )

    def render_html(self, turns: Sequence[RenderedTurn]) -> str:
        """HTML fragment; text and values are escaped by the template engine."""
        html = self.template.render(turns=turns)
        logger.debug(
            "Rendered conversation HTML",
            turn_count=len(turns),
            token_count=sum(len(t.tokens) for t in turns),
        )
        return html
