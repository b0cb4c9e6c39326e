"""Structured logging with structlog.

JSON lines in production, colorized console output in development.
Request-scoped values (request_id, actor) are bound through contextvars
by the request middleware in apps/api/main.py.

The pure packages/ code logs through the standard library; its records go
through the same processor chain, so every line on stdout has one format.

Usage:
    import structlog
    logger = structlog.get_logger()
    logger.info("statement_ingested", rows_imported=42, duplicates_skipped=3)
"""

import logging
import sys

import structlog

# Emit one INFO line per HTTP request to PostgREST; too chatty for a page scan.
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Python log level string (DEBUG, INFO, WARNING, ERROR).
        json_output: If True, use JSON renderer (production). If False,
                     use colorized console renderer (development).
    """
    shared: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=shared
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_output:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared + [structlog.stdlib.PositionalArgumentsFormatter()],
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.set_name("pledge_ledger")

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if h.get_name() != "pledge_ledger"]
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
