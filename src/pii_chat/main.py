"""
FastAPI application entry point for the PII-aware chat service.
"""

from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from pii_chat.api.dependencies import get_llm_client
from pii_chat.api.error_handlers import EXCEPTION_HANDLERS
from pii_chat.api.middleware import REQUEST_ID_HEADER, RequestTracingMiddleware
from pii_chat.api.routes_chat import router as chat_router
from pii_chat.api.routes_history import router as history_router
from pii_chat.config import settings
from pii_chat.logging_config import configure_logging
from pii_chat.persistence.redis_client import RedisClient

# Logging first so import-time log lines are structured
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Streaming chat with out-of-band PII detection and redacted history",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request id binding
app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER, "x-vercel-ai-ui-message-stream"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(chat_router, tags=["chat"])
app.include_router(history_router, tags=["history"])


@app.on_event("startup")
async def startup():
    """Probe the model server and the prompt templates; neither blocks startup."""
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        ollama_base_url=settings.OLLAMA_BASE_URL,
        generation_model=settings.GENERATION_MODEL,
        detection_model=settings.DETECTION_MODEL,
        detection_fail_open=settings.PII_DETECTION_FAIL_OPEN,
    )

    if await get_llm_client().health_check():
        logger.info("Model server reachable")
    else:
        logger.warning("Model server unreachable, chat will return 502", base_url=settings.OLLAMA_BASE_URL)

    templates_dir = Path(settings.PROMPT_TEMPLATES_DIR)
    if templates_dir.exists():
        logger.info("Prompt templates found", path=str(templates_dir))
    else:
        logger.error("Prompt templates missing", path=str(templates_dir))

    logger.info("Ready to stream")


@app.on_event("shutdown")
async def shutdown():
    """Close the model client and the conversation store pool."""
    logger.info("Shutting down")
    await get_llm_client().close()
    await RedisClient.close_async_pool()
    logger.info("Shutdown complete")


# HTTP metrics at /metrics; chat metrics are registered in monitoring.metrics
if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Service index."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "chat": "/api/chat",
        "conversations": "/conversations",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pii_chat.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
