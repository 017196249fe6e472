"""Structured logging configuration using structlog.

JSON lines in production, colored console output in development. A scrub
processor keeps chat content out of the logs: only lengths and counts of
message text and detected values are ever rendered.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Event keys that may carry user text, generated text or PII values
CONTENT_KEYS = frozenset({"message", "prompt", "text", "delta", "answer_text", "pii", "spans"})

_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "redis", "multipart")


def add_service_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", "pii-chat")
    return event_dict


def scrub_chat_content(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace content-bearing fields with their size.

    Strings become `<key>_length`, lists become `<key>_count`; anything else
    under a content key is dropped.
    """
    for key in CONTENT_KEYS & event_dict.keys():
        value = event_dict.pop(key)
        if isinstance(value, str):
            event_dict[f"{key}_length"] = len(value)
        elif isinstance(value, (list, tuple)):
            event_dict[f"{key}_count"] = len(value)
    return event_dict


def build_processors(is_production: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_name,
        scrub_chat_content,
    ]
    if is_production:
        processors.append(structlog.processors.format_exc_info)
    return processors


def configure_logging(log_level: str = "INFO", environment: str = "development") -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: "production" selects the JSON renderer

    Safe to call more than once; the root handler is replaced each time.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    is_production = environment.lower() == "production"
    shared_processors = build_processors(is_production)
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if is_production
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        renderer="json" if is_production else "console",
    )
