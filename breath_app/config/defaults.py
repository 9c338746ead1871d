"""Default timing parameters for the breathing scheduler."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TimingParams:
    """Tick-level timing constants."""
    lead_in_duration: int = 3              # Prepare-first countdown before round 1
    default_pause_duration: int = 4        # Pause used when a practice sets none
    inter_round_pause_duration: int = 0    # Host owns the visible delay between rounds
    tick_interval_seconds: float = 1.0     # One tick = one time unit


@dataclass(frozen=True)
class SpeedParams:
    """Transitional-phase elongation."""
    transition_speed_id: str = "ice-man"   # Speed whose transitional breaths are elongated
    transition_multiplier: int = 2


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    timing: TimingParams
    speed: SpeedParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        timing=TimingParams(),
        speed=SpeedParams(),
    )


DEFAULTS = get_default_config()
