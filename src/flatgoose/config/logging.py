"""Logging setup: structlog rendering for flatgoose's stdlib loggers.

Library modules only ever call ``logging.getLogger(__name__)`` and never
install handlers. Applications (and the CLI) opt in with
:func:`configure_logging`, which routes every record through a structlog
``ProcessorFormatter``:

- human (default): console renderer on stderr, colored on a TTY
- JSON (``--log-json``): one JSON object per line, tracebacks inlined
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog
from structlog.types import Processor

LIBRARY_LOGGER = "flatgoose"


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _render_chain(*, log_json: bool, stream: TextIO) -> list[Processor]:
    if log_json:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=stream.isatty())]


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Install one structlog-formatted handler on the root logger.

    Args:
        verbose: Let ``flatgoose.*`` DEBUG records through (WARNING otherwise).
        log_json: Emit JSON lines instead of console text.
        stream: Destination (defaults to ``sys.stderr``).

    Calling it again replaces the previous handler. Third-party loggers stay
    at WARNING either way.
    """
    target = stream or sys.stderr
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(target)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(log_json=log_json, stream=target),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(LIBRARY_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
