"""
Structured logging configuration using structlog.

Library modules only call ``logging.getLogger(__name__)``; the host decides
how records are rendered by calling :func:`setup_logging` once at startup.
Tool calls bind ``tool`` and ``network`` as contextvars, so every line a
provider or cache logs during a call can be traced back to it.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings


# Keys every JSON line carries, null outside a tool call
OPERATION_KEYS = ("tool", "network")

# Per-entry cache chatter that drowns out pipeline logs at DEBUG
CACHE_LOGGERS = ("defi_agent.core.token_cache", "defi_agent.core.quote_store", "defi_agent.core.janitor")


def add_operation_context(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    for key in OPERATION_KEYS:
        event_dict.setdefault(key, None)
    return event_dict


def setup_logging(log_level: Optional[str] = None, cache_debug: bool = False) -> None:
    """Configure structlog for the agent process.

    Args:
        log_level: Override log level (default: from settings.log_level)
        cache_debug: Keep token/quote cache loggers at DEBUG as well
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    is_dev = level == logging.DEBUG

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        # fixed keys keep the JSON schema stable for log pipelines
        shared_processors.append(add_operation_context)
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in ("uvicorn.access", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)

    cache_level = logging.NOTSET if cache_debug else max(level, logging.INFO)
    for name in CACHE_LOGGERS:
        logging.getLogger(name).setLevel(cache_level)
