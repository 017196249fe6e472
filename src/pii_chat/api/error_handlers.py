"""
FastAPI exception handlers for structured error responses.

Maps domain exceptions to appropriate HTTP status codes and formats.
Validation failures use the field-keyed shape the chat client expects:

    {"error": {"formErrors": [...], "fieldErrors": {"message": ["..."]}}}
"""

from datetime import datetime, timezone
from typing import Any, Iterable

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError as PydanticValidationError

from pii_chat.api.models import ErrorResponse
from pii_chat.llm.exceptions import LLMTimeoutError, ProviderError
from pii_chat.persistence.exceptions import (
    ConversationNotFound,
    CorruptConversationRecord,
    PersistenceError,
)

logger = structlog.get_logger(__name__)

# Location prefixes FastAPI adds in front of the field name
_LOCATION_ROOTS = {"body", "query", "path", "header", "cookie"}


def flatten_validation_errors(errors: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """
    Group pydantic errors by top-level field.

    Errors without a field (malformed JSON, wrong body type) land in
    `formErrors`.
    """
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}

    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in _LOCATION_ROOTS]
        message = error.get("msg", "Invalid value")
        if loc and error.get("type") != "json_invalid":
            field_errors.setdefault(str(loc[0]), []).append(message)
        else:
            form_errors.append(message)

    return {"formErrors": form_errors, "fieldErrors": field_errors}


def _error_json(status_code: int, error: str, message: str, details: dict | None = None) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        details=details,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle invalid request bodies.

    Maps to 400 Bad Request; the stream is never opened.
    """
    flattened = flatten_validation_errors(exc.errors())
    logger.warning("Invalid request", path=request.url.path, **flattened)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": flattened},
    )


async def pydantic_validation_error_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Validation failures raised inside handlers get the same shape."""
    flattened = flatten_validation_errors(exc.errors())
    logger.warning("Invalid payload", path=request.url.path, **flattened)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": flattened},
    )


async def provider_error_handler(request: Request, exc: ProviderError) -> PlainTextResponse:
    """
    Handle a model provider failing before the response stream exists.

    Maps to 502 Bad Gateway (504 on timeout) with a plain-text body: no
    protocol stream is opened.
    """
    status_code = (
        status.HTTP_504_GATEWAY_TIMEOUT
        if isinstance(exc, LLMTimeoutError)
        else status.HTTP_502_BAD_GATEWAY
    )
    logger.error(
        "Model provider error",
        error_type=type(exc).__name__,
        error=exc.message,
        details=exc.details,
        status_code=status_code,
    )
    return PlainTextResponse(exc.message, status_code=status_code)


async def not_found_handler(request: Request, exc: ConversationNotFound) -> JSONResponse:
    return _error_json(
        status.HTTP_404_NOT_FOUND,
        "not_found",
        exc.message,
        exc.details,
    )


async def corrupt_record_handler(request: Request, exc: CorruptConversationRecord) -> JSONResponse:
    logger.error("Corrupt conversation record", details=exc.details)
    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "corrupt_record",
        exc.message,
        exc.details,
    )


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """
    Handle conversation store failures on the history endpoints.

    Maps to 503 Service Unavailable.
    """
    logger.error("Persistence error", error=exc.message, details=exc.details)
    return _error_json(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "persistence_unavailable",
        "Conversation store is unavailable",
        exc.details,
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception("Unexpected error", error_type=type(exc).__name__)
    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    RequestValidationError: request_validation_error_handler,
    PydanticValidationError: pydantic_validation_error_handler,
    ProviderError: provider_error_handler,
    ConversationNotFound: not_found_handler,
    CorruptConversationRecord: corrupt_record_handler,
    PersistenceError: persistence_error_handler,
    Exception: generic_error_handler,
}
