"""
Logging configuration for the SDKMS client.

Provides centralized structured logging setup with JSON output for production
and human-readable output for development. Supports request IDs for
tracing a logical operation (e.g. an approval workflow) across API calls.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from structlog.types import EventDict


# Context variable for request ID
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def add_request_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add request ID to log events if present in context.

    Args:
        logger: Logger instance
        method_name: Name of the logging method
        event_dict: Event dictionary to modify

    Returns:
        Modified event dictionary with request_id if available
    """
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set request ID for the current context.

    Args:
        request_id: Optional request ID. If None, generates a new UUID.

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def clear_request_id() -> None:
    """Clear request ID from the current context."""
    request_id_var.set(None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context, or None if not set."""
    return request_id_var.get()


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = True,
) -> None:
    """
    Configure structured logging for the SDKMS client.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file. If None, logs only to stderr.
        json_format: If True, use JSON format. If False, use human-readable format.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(stderr_handler)

    processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_id,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.extend([
            structlog.dev.ConsoleRenderer(colors=True),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_logging_from_config(logging_config: Any) -> None:
    """Configure logging from the ``logging`` section of a loaded SdkmsConfig."""
    setup_logging(
        level=logging_config.level,
        log_file=Path(logging_config.file) if logging_config.file else None,
        json_format=logging_config.json_format,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance for a specific module.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        Structured logger instance.
    """
    if not name.startswith("sdkms"):
        name = f"sdkms.{name}"
    return structlog.get_logger(name)


# Convenience functions for common logging patterns

def log_api_exchange(
    logger: structlog.stdlib.BoundLogger,
    method: str,
    url: str,
    status_code: int,
    duration_ms: float,
    **kwargs: Any,
) -> None:
    """
    Log one completed HTTP exchange with the service.

    Args:
        logger: Logger instance
        method: HTTP method
        url: Full request URL
        status_code: Response status code
        duration_ms: Round-trip duration in milliseconds
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "api_exchange",
        "method": method,
        "url": url,
        "status_code": status_code,
        "duration_ms": duration_ms,
    }

    log_data.update(kwargs)

    logger.info(f"{status_code} {method} {url}", **log_data)


def log_authentication_failure(
    logger: structlog.stdlib.BoundLogger,
    auth_method: str,
    reason: str = "unknown",
    **kwargs: Any,
) -> None:
    """
    Log an authentication failure.

    Args:
        logger: Logger instance
        auth_method: Authentication method used ("api_key", "user", "app", "cert")
        reason: Reason for failure
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "authentication_failure",
        "auth_method": auth_method,
        "reason": reason,
    }

    log_data.update(kwargs)

    logger.warning("authentication_failure", **log_data)


def log_approval_transition(
    logger: structlog.stdlib.BoundLogger,
    request_id: str,
    status: str,
    attempts: int,
    **kwargs: Any,
) -> None:
    """
    Log that an approval request left the pending state.

    Args:
        logger: Logger instance
        request_id: Approval request ID
        status: Terminal status observed
        attempts: Number of status checks performed
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "approval_resolved",
        "approval_request_id": request_id,
        "status": status,
        "attempts": attempts,
    }

    log_data.update(kwargs)

    if status == "APPROVED":
        logger.info("approval_resolved", **log_data)
    else:
        logger.warning("approval_resolved", **log_data)
