"""
Centralized logging configuration for the breathing scheduler.

This module provides standardized logging configuration using structlog
for all components. Hosts embedding the scheduler call configure_logging()
once; library modules only ask for loggers.
"""
import logging
import sys
from typing import Any, Optional, TextIO

import structlog
from structlog.types import FilteringBoundLogger


TRANSITION_EVENT_TYPE = "state_transition"


def flatten_transition_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Lift the state summary of a phase transition record into top-level keys.

    Keys already present on the record win over the summary.
    """
    if event_dict.get("event_type") != TRANSITION_EVENT_TYPE:
        return event_dict

    context = event_dict.pop("context", None)
    if isinstance(context, dict):
        for key, value in context.items():
            event_dict.setdefault(key, value)
    return event_dict


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None,
    stream: Optional[TextIO] = None
) -> None:
    """
    Configure structlog for the host application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
        stream: Output stream, stdout if None
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=stream or sys.stdout,
        format="%(message)s",  # structlog will handle formatting
        force=True
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        flatten_transition_context,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                       structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

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


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger specifically configured for phase transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="state_machine",
        audit_trail=True
    )


def get_control_logger(name: str) -> FilteringBoundLogger:
    """Get a logger for run-control calls (start, pause, resume, stop, reset)."""
    return get_logger(name).bind(subsystem="run_control")


def log_state_transition(
    logger: FilteringBoundLogger,
    practice_id: str,
    from_phase: str,
    to_phase: Optional[str],
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a phase transition with standardized format.

    Args:
        logger: Structlog logger instance
        practice_id: ID of the practice being run
        from_phase: Phase that just ended
        to_phase: Phase that starts, None when the exercise completed
        trigger: Name of the transition rule that fired
        context: Additional context data (counters, hold types)
    """
    bound_logger = logger.bind(
        practice_id=practice_id,
        from_phase=from_phase,
        to_phase=to_phase,
        trigger=trigger,
        event_type=TRANSITION_EVENT_TYPE
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Phase transition")
