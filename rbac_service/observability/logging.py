"""
Structured Logging with structlog
=============================================================================
CONCEPT: Why Structured Logging for Access Control?

Authorization decisions are the first thing an operator asks about when a
user reports "I can't see the Roles screen" or "who deleted that profile?".
A plain text line like

    2025-08-08 15:35:49 WARNING user denied

is useless. The structured equivalent carries every field needed to answer
the question:

    {
        "timestamp": "2025-08-08T15:35:49.123Z",
        "level": "warning",
        "logger": "rbac_service.auth.rbac",
        "event": "permission_denied",
        "entity": "Roles",
        "action": "create",
        "role": "Trabajador"
    }

and can be filtered with `jq 'select(.event == "permission_denied")'` or
any log aggregator.

EVENT NAMING CONVENTION:
  Events are snake_case verbs in the past tense describing what happened:
    permissions_resolved, role_not_found, profile_cell_toggled,
    referential_conflict, user_deactivated, ...
  Context goes in key/value pairs, never interpolated into the event name.

NEVER LOG: passwords, password hashes, JWTs.
=============================================================================
"""

import logging
import sys

import structlog

from rbac_service.config import settings


_logging_configured: bool = False


def setup_logging() -> None:
    """
    Configure structlog for structured logging.

    Called once during application startup (in main.py's lifespan function).
    Calling it again is a no-op.

    THE PROCESSOR CHAIN:
      1. merge_contextvars — request-scoped fields bound with
         structlog.contextvars.bind_contextvars() (e.g. the session's role)
      2. filter_by_level — drop entries below the configured level
      3. add_logger_name / add_log_level — logger and level fields
      4. PositionalArgumentsFormatter — printf-style compatibility
      5. TimeStamper(fmt="iso") — ISO-8601 timestamp
      6. StackInfoRenderer / format_exc_info — stack and exception rendering
      7. UnicodeDecoder — byte strings to text
      8. ProcessorFormatter.wrap_for_formatter — hand off to stdlib logging
    """
    global _logging_configured

    if _logging_configured:
        return

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=shared_processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Console output while developing, JSON lines everywhere else.
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer()
        if settings.debug
        else structlog.processors.JSONRenderer(),
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for noisy_logger in ["uvicorn", "uvicorn.access", "sqlalchemy.engine", "passlib"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Factory function to get a named structured logger.

    Use the module's __name__ as the logger name so entries can be filtered
    by component ("rbac_service.services.*", "rbac_service.core.resolver").

    USAGE:
        from rbac_service.observability.logging import get_logger

        logger = get_logger(__name__)
        logger.info("profile_created", profile_id=profile["id"], name=profile["name"])

        # Bind fields once for a sequence of related entries
        role_logger = logger.bind(role="Supervisor")
        role_logger.info("permissions_resolved", profile_id="p1")
    """
    return structlog.get_logger(name)
