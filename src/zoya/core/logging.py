"""Structured logging for the Zoya assistant.

structlog on top of the stdlib root logger, writing to stdout: JSON lines
for the server, a coloured console renderer for the CLI. Every line logged
while a command is being classified and executed carries that command's
``command_id``, so one request can be followed through the classifier,
the executor and the store.

Usage:
    from zoya.core.logging import command_scope, get_logger

    logger = get_logger(__name__)

    with command_scope() as command_id:
        logger.info("command_classified", action="create_task", confidence=0.7)
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

_command_id: ContextVar[str | None] = ContextVar("command_id", default=None)

# Third-party loggers that log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "aiosqlite")


@contextmanager
def command_scope(command_id: str | None = None) -> Iterator[str]:
    """Tag log lines emitted inside the block with a command id.

    The previous id (if any) is restored on exit, so nested or concurrent
    commands never leak their id into each other's lines.

    Args:
        command_id: Id to use; a fresh UUID4 when omitted

    Yields:
        The active command id
    """
    command_id = command_id or str(uuid.uuid4())
    token = _command_id.set(command_id)
    try:
        yield command_id
    finally:
        _command_id.reset(token)


def current_command_id() -> str | None:
    return _command_id.get()


def _add_command_id(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    command_id = _command_id.get()
    if command_id is not None:
        event_dict.setdefault("command_id", command_id)
    return event_dict


def _renderer(json_output: bool) -> list[structlog.types.Processor]:
    if json_output:
        # Urdu command text must stay readable in the log stream
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_output: JSON lines when True, human-readable console output otherwise
    """
    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    # Keep HTTP client chatter out of INFO unless debugging
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            _add_command_id,
            *_renderer(json_output),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)
