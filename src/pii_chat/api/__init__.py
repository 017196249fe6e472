"""
FastAPI API routes and endpoints.

- routes_chat.py: POST /api/chat (UI message event stream)
- routes_history.py: conversation list/get/save/delete, rendered views, GET /health
- dependencies.py: Dependency injection for LLM client, adapters, repository
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request id tracing
"""

from pii_chat.api import dependencies, error_handlers, models
from pii_chat.api.routes_chat import router as chat_router
from pii_chat.api.routes_history import router as history_router

__all__ = [
    "chat_router",
    "history_router",
    "dependencies",
    "error_handlers",
    "models",
]
