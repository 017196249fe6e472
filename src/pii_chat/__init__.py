"""
PII-aware streaming chat service.

Streams a generation model's answer as UI message events while a second
model scans the question for personal data. The answer carries `$N`
placeholders; the detected values travel in one metadata patch, so the
pair can be stored and rendered as click-to-reveal redacted tokens.

Architecture: FastAPI orchestrator + Ollama inference + Redis history
"""

__version__ = "0.1.0"
