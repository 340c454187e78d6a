"""Structured logging setup for projecthub.

Learn: structlog builds each event as a dict, runs it through a chain of
processors, and hands it to the stdlib root logger, so uvicorn's and
SQLAlchemy's own records come out in the same format. Production gets
one JSON object per line, development a colored console.

Credentials must never reach a log line. Redaction runs last in the
shared chain and also looks one level into dict values, since request
bodies get logged as `body={...}`.
"""

import logging
import sys
from typing import Any

import structlog

REDACTED = "***REDACTED***"

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {"password", "password_hash", "secret", "token", "access_token", "authorization"}
)

# Libraries whose INFO output is noise next to our own events.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx")


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else v
            for k, v in value.items()
        }
    return value


def redact_sensitive(
    logger: Any,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """structlog processor: blank out credential-like keys."""
    for key, value in event_dict.items():
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _scrub(value)
    return event_dict


def _renderer(environment: str) -> structlog.types.Processor:
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(environment: str = "development", log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging through one handler on stdout."""
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive,
    ]
    if environment == "production":
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(environment),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
