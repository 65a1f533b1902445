"""Structured logging configuration for RepoFix."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

from .config import get_settings


def setup_logging() -> None:
    """Configure structured logging for RepoFix."""
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=settings.log_level.upper(),
        force=True,
    )

    # Configure structlog
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_workflow_event(
    logger: structlog.stdlib.BoundLogger,
    session_id: str,
    stage: str,
    finding_id: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """Log a workflow event with session context."""
    log_data: Dict[str, Any] = {
        "session_id": session_id,
        "stage": stage,
    }

    if finding_id is not None:
        log_data["finding_id"] = finding_id

    log_data.update(kwargs)

    logger.info(f"workflow.{stage}", **log_data)


def log_github_call(
    logger: structlog.stdlib.BoundLogger,
    method: str,
    endpoint: str,
    payload: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> None:
    """Log a GitHub API call."""
    log_data: Dict[str, Any] = {
        "http_method": method,
        "endpoint": endpoint,
    }

    # Payload keys only; file content and tokens stay out of the logs
    if payload:
        log_data["payload_keys"] = list(payload.keys())
        log_data["payload_size"] = len(str(payload))

    log_data.update(kwargs)

    logger.info("github.call", **log_data)


# Initialize logging on module import
setup_logging()
