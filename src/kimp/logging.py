"""structlog setup for the premium tracker.

Events go through stdlib logging so uvicorn, httpx and ccxt output share
one handler and format. A computation pass binds its canonical date and
zone with ``pass_context`` and every event emitted inside the pass carries
them.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

#: Third-party loggers that log every request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "ccxt")


def _renderer() -> structlog.types.Processor:
    # LOG_FORMAT=json in deployments, console locally
    if os.environ.get("LOG_FORMAT", "console").lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def pass_context(pass_date: str, timezone: str) -> Iterator[None]:
    """Bind ``pass_date`` and ``timezone`` to every event emitted inside the block."""
    structlog.contextvars.bind_contextvars(pass_date=pass_date, timezone=timezone)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars("pass_date", "timezone")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
