"""
Error classification for the breathing scheduler.

Configuration errors are raised synchronously while a practice is being
parsed, validated or started. System failures signal a corrupted state machine
and are never expected during a well-formed run.
"""

from .configuration import (
    ConfigurationError,
    InvalidRoundError,
    MalformedPracticeError,
    UnknownPracticeError,
)
from .system_failures import (
    SystemFailureError,
    StateTransitionError,
)

__all__ = [
    # Configuration Errors
    "ConfigurationError",
    "InvalidRoundError",
    "MalformedPracticeError",
    "UnknownPracticeError",
    # System Failures
    "SystemFailureError",
    "StateTransitionError",
]
