"""
core/logging.py
---------------
structlog setup.

  DEBUG=true  → coloured console lines
  DEBUG=false → one JSON object per line

Once the guard has authorised a request, company_id and user_id are bound
into the structlog contextvars so every later log line of that request
carries them. Values under secret-looking keys are masked before rendering;
log a token prefix or a record id, never the token.
"""

import logging
import sys
from typing import Optional

import structlog

from summit.core.config import settings

SECRET_KEYS = frozenset(
    {"password", "hashed_password", "token", "secret", "full_token", "token_hash", "authorization"}
)


def redact_secrets(logger, method_name, event_dict):
    for key in event_dict.keys() & SECRET_KEYS:
        event_dict[key] = "***"
    return event_dict


def configure_logging() -> None:
    level = logging.DEBUG if settings.DEBUG else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    # Chatty third-party loggers only speak up in debug mode
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "botocore", "passlib"):
        logging.getLogger(noisy).setLevel(level if settings.DEBUG else logging.WARNING)

    if settings.DEBUG:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_tenant_context(company_id: str, user_id: Optional[str] = None) -> None:
    structlog.contextvars.bind_contextvars(company_id=company_id, user_id=user_id)


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
