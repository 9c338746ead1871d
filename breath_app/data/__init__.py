"""
Practice data models and raw configuration parsing.
"""

from .models import HoldPhase, PracticeConfig, RoundConfig, SpeedConfig
from .parsers import parse_practice_config

__all__ = [
    "HoldPhase",
    "PracticeConfig",
    "RoundConfig",
    "SpeedConfig",
    "parse_practice_config",
]
