"""
Centralized logging configuration for statemount.

This module provides standardized logging configuration using structlog
for all components. Lifecycle transitions, registry changes and session
teardown are all logged through the helpers defined here.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    # Convert string level to logging constant
    log_level = getattr(logging, level.upper())

    # Route stdlib logging to stdout; structlog renders the message
    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    # Build processor chain
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Optional enrichment
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    # Caller-supplied processors run before rendering
    if extra_processors:
        processors.extend(extra_processors)

    # Renderer goes last
    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    # Configure structlog
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_lifecycle_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for state start/stop transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the lifecycle subsystem
    """
    return get_logger(name).bind(subsystem="lifecycle")


def log_state_transition(
    logger: FilteringBoundLogger,
    state_id: str,
    session_id: str,
    from_status: str,
    to_status: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a state transition with standardized format.

    Args:
        logger: Structlog logger instance
        state_id: Id of the state transitioning
        session_id: Session the transition applies to
        from_status: Status before the transition
        to_status: Status after the transition
        trigger: Operation that caused the transition (start, stop, teardown)
        context: Additional context data
    """
    bound_logger = logger.bind(
        state_id=state_id,
        session_id=session_id,
        from_status=from_status,
        to_status=to_status,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")
