"""
Structured logging setup.

structlog renders through the standard library root handler so that
uvicorn and pymongo records end up on the same stream.

Usage:
    configure_logging(level="INFO", format="json")
    logger = get_logger(__name__)
    logger.info("server_starting", port=10000)
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor


def add_log_level(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    if method_name == "warn":
        method_name = "warning"
    event_dict["level"] = method_name
    return event_dict


def configure_logging(level: str = "INFO", format: str = "console") -> None:
    """Configure structlog and the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format: "json" for production, "console" for development
    """
    logging_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging_level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    # Clear existing handlers to allow reconfiguration
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging_level)
    root_logger.addHandler(handler)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
