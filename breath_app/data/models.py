"""
Canonical data models for breathing practice configuration.

This module defines immutable data structures describing a practice: its
legacy flat-cycle timings, its optional rounds and the breathing speeds a
round can select. A PracticeConfig is never mutated during a run.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..config.defaults import DEFAULTS


class HoldPhase(str, Enum):
    """Breath the round's final hold is taken on."""
    INHALE = "inhale"
    EXHALE = "exhale"


@dataclass(frozen=True)
class SpeedConfig:
    """Named pair of inhale/exhale durations selectable per round."""
    id: str                          # e.g. "ice-man", "space-man"
    inhale_duration: int
    exhale_duration: int
    name: Optional[str] = None       # Display name


@dataclass(frozen=True)
class RoundConfig:
    """One round: a fixed number of cycles ending in a hold."""
    index: int                       # 1-based, matches position
    cycles: int
    final_hold_phase: HoldPhase
    final_hold_duration: int
    breath_speed_id: Optional[str] = None   # Falls back to practice default
    id: Optional[str] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class PracticeConfig:
    """Static practice configuration supplied by the host."""

    # Legacy flat-cycle timings (also the fallback for round-based practices)
    cycles: int
    inhale_duration: int
    exhale_duration: int
    hold_duration: int
    pause_duration: int = DEFAULTS.timing.default_pause_duration
    final_hold_duration: Optional[int] = None
    global_inhale_hold_duration: Optional[int] = None

    # Round-based mode supersedes the flat cycles when non-empty
    rounds: tuple[RoundConfig, ...] = ()
    available_speeds: tuple[SpeedConfig, ...] = ()
    default_speed_id: Optional[str] = None

    # Descriptive fields
    id: str = "custom"
    name: str = ""
    description: str = ""
    benefits: tuple[str, ...] = ()

    @property
    def is_round_based(self) -> bool:
        """True when the practice is driven by rounds."""
        return len(self.rounds) > 0

    @property
    def total_rounds(self) -> int:
        return len(self.rounds)

    def get_round(self, index: Optional[int]) -> Optional[RoundConfig]:
        """Round with the given 1-based index, None if absent."""
        if index is None:
            return None
        for round_cfg in self.rounds:
            if round_cfg.index == index:
                return round_cfg
        return None

    def get_speed(self, speed_id: Optional[str]) -> Optional[SpeedConfig]:
        """Speed with the given id, None if absent."""
        if speed_id is None:
            return None
        for speed in self.available_speeds:
            if speed.id == speed_id:
                return speed
        return None

    def speed_id_for(self, round_cfg: Optional[RoundConfig]) -> Optional[str]:
        """Speed id in effect for a round (round choice, then practice default)."""
        if round_cfg is not None and round_cfg.breath_speed_id:
            return round_cfg.breath_speed_id
        return self.default_speed_id

    def with_session(self, cycles: Optional[int] = None, speed_id: Optional[str] = None) -> "PracticeConfig":
        """
        Copy with a session-wide cycle count and breathing speed applied to every round.

        Legacy practices have no rounds and are returned unchanged.

        Args:
            cycles: Cycles per round for this session, None keeps each round's own
            speed_id: Breath speed for every round, None keeps each round's own

        Returns:
            Derived practice configuration
        """
        if not self.is_round_based:
            return self

        changes = {}
        if cycles is not None:
            changes["cycles"] = cycles
        if speed_id is not None:
            changes["breath_speed_id"] = speed_id
        if not changes:
            return self

        return replace(self, rounds=tuple(replace(round_cfg, **changes) for round_cfg in self.rounds))
