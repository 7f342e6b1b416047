"""Structured logging for the analytics backend.

Every module logs through ``structlog.get_logger(__name__)`` with keyword
context. Output is JSON in production and a readable console format when
debugging.
"""

import logging
from typing import List

import structlog
from structlog.typing import Processor

# Chatty libraries that only matter when something is wrong
QUIET_LOGGERS = ("apscheduler", "httpx", "httpcore", "uvicorn.access")


def _shared_processors() -> List[Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure stdlib logging and structlog.

    :param log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :param json_logs: Render JSON lines; otherwise a colourless console format
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors = _shared_processors()
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
