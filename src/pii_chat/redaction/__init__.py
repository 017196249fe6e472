"""
Client-facing redaction rendering.

- renderer.py: decode answer turns into masked, revealable tokens
- templates/: HTML fragment for the chat view
"""

from pii_chat.redaction.renderer import (
    RedactedToken,
    RedactionRenderer,
    RenderedSegment,
    RenderedTurn,
)

__all__ = [
    "RedactedToken",
    "RedactionRenderer",
    "RenderedSegment",
    "RenderedTurn",
]
