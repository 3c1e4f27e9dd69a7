"""structlog setup shared by the CLI and the pytest plugin.

Records go to stderr so they never mix with command output or test results.
Two environment variables control rendering:

    PRECONDITIONS_LOG_FORMAT=json   one JSON object per line (CI collectors)
    PRECONDITIONS_LOG_LEVEL=DEBUG   show every probe and cache hit

Evaluation code logs through ``get_logger(__name__)`` and binds
``session_id`` on the logger it keeps for the session:

    log = get_logger(__name__).bind(session_id="a1b2c3")
    log.debug("fact_computed", fact="java_version", duration_ms=84)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.types import Processor

__all__ = [
    "configure_logging",
    "evaluation_context",
    "get_logger",
    "bind_context",
    "clear_context",
    "verbosity_level",
]

LOG_FORMAT_ENV_VAR = "PRECONDITIONS_LOG_FORMAT"
LOG_LEVEL_ENV_VAR = "PRECONDITIONS_LOG_LEVEL"

# Evaluation is silent unless something is wrong.
DEFAULT_LEVEL = logging.WARNING

_NAMED_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "").lower()
    return _NAMED_LEVELS.get(name, DEFAULT_LEVEL)


def verbosity_level(
    verbose: int = 0, quiet: bool = False, configured: str = ""
) -> int:
    """Map CLI flags and the configured verbosity to a logging level.

    ``quiet`` wins over ``verbose``, which wins over the configured name.
    An unknown configured name means the default level.
    """
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.INFO if verbose == 1 else logging.DEBUG
    return _NAMED_LEVELS.get(configured.lower(), DEFAULT_LEVEL)


def _pre_chain() -> list[Processor]:
    # Runs for structlog events and for foreign stdlib records alike.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_output: bool) -> Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    *,
    level: int | None = None,
    json_output: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """(Re)configure structlog and the root stdlib logger.

    Args:
        level: Logging level. Defaults to PRECONDITIONS_LOG_LEVEL, then WARNING.
        json_output: Render JSON lines. Defaults to PRECONDITIONS_LOG_FORMAT.
        stream: Destination for records. Defaults to stderr.
    """
    if json_output is None:
        json_output = os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"
    if level is None:
        level = _level_from_env()

    exc_processor: Processor = (
        structlog.processors.dict_tracebacks
        if json_output
        else structlog.processors.format_exc_info
    )
    structlog.configure(
        processors=[
            *_pre_chain(),
            exc_processor,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output),
            ],
            foreign_pre_chain=_pre_chain(),
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Attach key/value pairs to every record logged from this context."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def evaluation_context(**context: Any) -> Iterator[None]:
    """Bind ``context`` for the duration of a block, then unbind those keys.

    Example:
        with evaluation_context(command="check"):
            session.evaluate("HAS_DOCKER")
    """
    tokens = structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
