"""
Structured logging setup.

Every module gets its logger with `structlog.get_logger(__name__)`; this module
only wires the processor chain once, at process start.
"""

import logging
import sys

import structlog

from core.config import LoggingConfig


def configure_logging(config: LoggingConfig) -> None:
    """Configure stdlib logging and structlog from the logging section."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, config.level),
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if config.format == "console":
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend(
            [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        )

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
