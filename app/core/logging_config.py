"""Structured logging configuration."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

# Transport libraries that log every request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore")


def add_service(service: str) -> Processor:
    """Build a processor stamping every event with the service name."""

    def processor(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def setup_logging(
    log_level: str = "INFO",
    use_json: bool = False,
    include_caller_info: bool = True,
    service: Optional[str] = None,
) -> None:
    """Setup structured logging for the exporter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_json: If True, output JSON lines (for log aggregation). If False, use colored console output.
        include_caller_info: If True, include module, line number and function of the call site
        service: Name added to every event as ``service``, omitted when None
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if service:
        processors.append(add_service(service))

    if include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                }
            )
        )
    processors.append(structlog.processors.StackInfoRenderer())
    processors.append(structlog.processors.format_exc_info)

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, e.g. ``get_logger(__name__).info("remo_fetch_complete", api="devices")``."""
    return structlog.get_logger(name)
