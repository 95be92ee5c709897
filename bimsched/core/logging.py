"""Structured logging for schedule runs.

Every builder run binds its record category and grouping attribute onto the
structlog context, so all events of one run (including those emitted by the
host adapters) carry them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog

LOG_FILE = Path("logs/bimsched.log")


def configure_logging(level: str = "INFO", log_format: str = "text") -> None:
    """Configure structlog and route stdlib logging through the same handlers.

    Args:
        level: Minimum log level name (DEBUG, INFO, ...)
        log_format: "json" for one JSON object per line, anything else for
            the coloured console renderer
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if LOG_FILE.parent.exists():
        handlers.append(logging.FileHandler(LOG_FILE))

    logging.basicConfig(format="%(message)s", handlers=handlers, level=level.upper())


@contextmanager
def run_context(category: str, attribute: str) -> Iterator[str]:
    """Bind a run id, category and grouping attribute for the duration of a run.

    Yields:
        The generated run id
    """
    run_id = uuid4().hex[:12]
    tokens = structlog.contextvars.bind_contextvars(
        run_id=run_id, category=category, attribute=attribute
    )
    try:
        yield run_id
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
