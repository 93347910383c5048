"""structlog setup for CLI runs."""

import logging
import sys

import structlog


def configure_logging(debug: bool = False) -> None:
    """Render structlog events to stderr, at DEBUG level when `debug` is set.

    Logs go to stderr so that workflow commands printed on stdout
    (`::add-mask::` and friends) are never interleaved with log lines.
    """
    level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
