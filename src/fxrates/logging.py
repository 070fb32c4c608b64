"""Structured logging configuration using structlog.

Ingestion ticks and provider calls run as concurrent asyncio tasks, so
per-tick context (loop name, source) is carried with structlog.contextvars
rather than thread-local state.
"""

import logging

import structlog

# Third-party loggers that are chatty at INFO/DEBUG during every poll.
_NOISY_LOGGERS = ("ccxt", "ccxt.base.exchange", "aiosqlite", "asyncio")


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Configure structlog on top of the stdlib logging root handler.

    log_format "json" renders one JSON object per line; anything else uses
    the console renderer.
    """
    fmt = log_format.lower()
    level = getattr(logging, log_level.upper(), logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
