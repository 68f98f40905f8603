"""
Structured logging configuration using structlog.

JSON lines in production, colored console output otherwise. Services bind
fields such as ``run_id``, ``source_id`` and ``provider_id``; any field
that looks like a credential is masked before rendering.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from newsforge.config.settings import get_settings

SECRET_FIELDS = frozenset({"api_key", "access_token", "authorization", "token", "password"})

QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "openai", "anthropic", "feedparser")


def redact_secrets(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Mask credential-like fields, keeping the last four characters."""
    for key in event_dict.keys() & SECRET_FIELDS:
        value = event_dict[key]
        if isinstance(value, str) and value:
            event_dict[key] = f"***{value[-4:]}" if len(value) > 8 else "***"
    return event_dict


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Log level name; defaults to ``LOG_LEVEL``
        json_logs: Force JSON output; defaults to production-only

    Usage:
        setup_logging()
        logger = structlog.get_logger(__name__)
        logger.info("Fetching source", source_id=12, kind="feed")
    """
    settings = get_settings()
    level = level or settings.log_level
    if json_logs is None:
        json_logs = settings.is_production

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, level))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
