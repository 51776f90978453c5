"""Diagnostic logging for the Black Hack virtual tabletop engine.

Two logs exist side by side:

- the game log, a list of LogEntry lines inside each GameState, shown to
  the table;
- the diagnostic log configured here with structlog, meant for developers
  and operators.

Engine modules log rule outcomes (rolls, targets, rejections) as
key/value events. Values such as grid positions, effect ids or condition
sets are flattened to plain strings and lists so the JSON renderer can
emit them.

Example:
    >>> from blackhack_vtt.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.info("Attack rolled", attacker="C1", roll=7, success=True)
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog
from pydantic import BaseModel
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


ENGINE_NAME = "blackhack_vtt"

_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# =============================================================================
# Processors
# =============================================================================


def add_engine_name(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every event with the engine name."""
    event_dict.setdefault("engine", ENGINE_NAME)
    return event_dict


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, BaseModel):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(_plain(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    return value


def flatten_domain_values(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Turn enums, ids, models and sets into JSON-friendly values."""
    return {
        key: value if key == "exc_info" else _plain(value)
        for key, value in event_dict.items()
    }


# =============================================================================
# Setup
# =============================================================================


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure diagnostic logging for the engine.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit one JSON object per event instead of console lines.
        log_file: Optional path that also receives standard library records.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_engine_name,
        flatten_domain_values,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
    logging.basicConfig(level=log_level, handlers=handlers, force=True)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


# =============================================================================
# Context
# =============================================================================


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every following event in this context.

    Example:
        >>> bind_context(intent="attack")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop every bound context value."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "ENGINE_NAME",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "add_engine_name",
    "flatten_domain_values",
]
