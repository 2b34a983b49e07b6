"""
Structured logging for fallible.

Library modules only ever call :func:`get_logger`; output format and level
are decided once by the application (the CLI does it from
``RetrySettings``) through :func:`configure_logging`.

Usage Flow:
    ::

        logger = get_logger(__name__)
        logger.debug("retry_backoff", attempt=2, error="...", strategy="ConstantBackoff")

        Output (JSON format):
        {
          "@timestamp": "2026-10-18T10:00:00Z",
          "log.level": "debug",
          "service.name": "fallible",
          "event": "retry_backoff",
          "attempt": 2,
          "strategy": "ConstantBackoff"
        }

    Per-request fields go through structlog's context variables::

        with structlog.contextvars.bound_contextvars(url=url):
            retryer.do(ctx, fetch)

Guardrails:
    - The retry loop itself never logs; attempt-level visibility comes from
      the backoff callback (see ``fallible.execution.backoff.LoggingBackoff``)
    - JSON output uses ECS field names; console output is for humans
    - Everything goes to stderr, stdout belongs to the CLI's results

Tags:
    logging, structlog, observability, fallible

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_ECS_RENAMES = {"timestamp": "@timestamp", "level": "log.level"}


def _ecs_fields(service: str) -> Processor:
    """Processor stamping ``service.name`` and renaming fields to ECS names."""

    def processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", service)
        for old, new in _ECS_RENAMES.items():
            if old in event_dict:
                event_dict[new] = event_dict.pop(old)
        return event_dict

    return processor


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "fallible",
) -> None:
    """Route structlog through stdlib logging on stderr.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        json_format: True for JSON, False for console, None for JSON unless
            stderr is a terminal
        service: ``service.name`` stamped on JSON records
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()
    numeric_level = getattr(logging, level.upper())

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.dev.set_exc_info,
    ]
    if json_format:
        processors += [_ecs_fields(service), structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


__all__ = ["configure_logging", "get_logger"]
