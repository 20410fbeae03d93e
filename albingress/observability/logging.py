"""Structured logging configuration using structlog.

Every line carries the controller name and the ingress class it serves, so
several controllers deployed for different classes can share one log sink.
Library loggers (kubernetes-asyncio, aiohttp, uvicorn) go through stdlib
logging at the same level and land on the same stream.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

CONTROLLER_NAME = "albingress"


def _controller_fields(ingress_class: str) -> structlog.types.Processor:
    # Static fields rather than contextvars: reconcile workers are plain
    # threads and do not inherit the loop's context.
    def _add(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("controller", CONTROLLER_NAME)
        event_dict.setdefault("ingress_class", ingress_class)
        return event_dict

    return _add


def setup_logging(level: str = "info", ingress_class: str = "") -> None:
    """Configure structlog for JSON output to stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(name)s %(levelname)s %(message)s")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _controller_fields(ingress_class),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
