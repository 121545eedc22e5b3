"""
Structured logging setup for the rental notification backend.
Provides JSON-formatted logs with consistent fields for production monitoring.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output for production.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_context,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _add_service_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag every entry with the service name."""
    event_dict.setdefault("service", "rental-notify")
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Convenience functions for common log patterns
def log_delivery_outcome(item_id: str, recipient: str, success: bool, error: str = None):
    """Log a delivery attempt with consistent fields."""
    logger = get_logger("delivery")

    log_data = {
        "item_id": item_id,
        "recipient": recipient,
        "success": success,
        "event_type": "delivery_attempt",
    }

    if error:
        log_data["error"] = error

    if success:
        logger.info("Queue item delivered", **log_data)
    else:
        logger.warning("Queue item delivery failed", **log_data)


def log_job_run(job_name: str, success: bool, duration_ms: float, manual: bool = False, error: str = None):
    """Log a scheduled job execution with consistent fields."""
    logger = get_logger("scheduler")

    log_data = {
        "job_name": job_name,
        "success": success,
        "duration_ms": duration_ms,
        "manual": manual,
        "event_type": "job_run",
    }

    if error:
        log_data["error"] = error

    if success:
        logger.info("Job run completed", **log_data)
    else:
        logger.error("Job run failed", **log_data)
