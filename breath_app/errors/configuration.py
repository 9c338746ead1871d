"""
Configuration error classifications for practice setup.

These exceptions are raised before a run starts. A practice that fails any of
these checks never reaches the transition engine.
"""

from typing import Any, Optional


class ConfigurationError(Exception):
    """Base class for practice configuration problems."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class InvalidRoundError(ConfigurationError):
    """A round cannot be run (no cycles or no final hold)."""

    def __init__(self, message: str, round_index: Optional[int] = None,
                 field: Optional[str] = None, value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.round_index = round_index
        self.field = field
        self.value = value


class MalformedPracticeError(ConfigurationError):
    """Raw practice data is missing fields or has the wrong types."""

    def __init__(self, message: str, field: Optional[str] = None,
                 raw_value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.raw_value = raw_value


class UnknownPracticeError(ConfigurationError):
    """Requested practice id is not present in the catalog."""

    def __init__(self, message: str, practice_id: Optional[str] = None,
                 available: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.practice_id = practice_id
        self.available = available or []
