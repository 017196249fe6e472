"""
Integration tests for the PII chat service.

Test components together or against real external services:
- API endpoints (FastAPI TestClient, scripted model server)
- Conversation repository against a real Redis (skipped when unavailable)
"""
