"""
Unit tests for the PII chat service.

Test individual components in isolation:
- Placeholder decoding and detector span parsing
- Chat models and the protocol event envelope
- Prompt builder and Ollama client (mocked transport)
- Generation and detection adapters, exchange orchestration, SSE framing
- History codec and conversation sessions
- Redaction renderer
- Conversation repository (mocked Redis)
"""
