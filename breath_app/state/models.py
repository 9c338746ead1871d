"""
State machine data models for the breathing exercise.

This module defines the immutable exercise state (one variant for round-based
practices, one for legacy flat-cycle practices), hold classification and the
result of evaluating a single tick.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class BreathingPhase(str, Enum):
    """Current breathing instruction."""
    INHALE = "inhale"
    HOLD = "hold"
    EXHALE = "exhale"
    PAUSE = "pause"


class HoldType(str, Enum):
    """Position of a hold inside the exercise."""
    ROUND_EXHALE = "round-exhale"        # End of round, lungs empty
    ROUND_INHALE = "round-inhale"        # End of round, lungs full
    GLOBAL_INHALE = "global-inhale"      # Climactic inhale hold of the last round

    @property
    def is_inhale_hold(self) -> bool:
        """Holds taken on a full inhale (followed by a transitional exhale)."""
        return self in (HoldType.ROUND_INHALE, HoldType.GLOBAL_INHALE)


class TransitionKind(str, Enum):
    """Transition rules; one fires per tick."""
    COUNTDOWN = "countdown"                          # Phase still running

    # Round-based regime
    ROUND_PAUSE_ENDED = "round_pause_ended"          # Lead-in or inter-round pause over
    INHALE_HOLD_ENDED = "inhale_hold_ended"          # Hold on full inhale -> transitional exhale
    EXHALE_HOLD_ENDED = "exhale_hold_ended"          # Round-exhale hold -> transitional inhale
    CLOSING_HOLD_ENDED = "closing_hold_ended"        # Hold of an inhale-ending round -> next round
    ROUND_CYCLES_DONE = "round_cycles_done"          # Last ordinary exhale of the round
    NEXT_CYCLE = "next_cycle"                        # Exhale -> inhale of the next cycle
    RECOVERY_INHALE_ENDED = "recovery_inhale_ended"  # Transitional inhale -> inhale hold
    CLOSING_INHALE_ENDED = "closing_inhale_ended"    # Closing inhale -> inhale hold
    RECOVERY_EXHALE_ENDED = "recovery_exhale_ended"  # Transitional exhale -> pause / done
    NEXT_PHASE = "next_phase"                        # Inhale -> exhale within a cycle

    # Legacy flat-cycle regime
    LEGACY_NEXT_PHASE = "legacy_next_phase"
    LEGACY_NEXT_CYCLE = "legacy_next_cycle"
    LEGACY_FINAL_HOLD = "legacy_final_hold"
    LEGACY_COMPLETE = "legacy_complete"


@dataclass(frozen=True)
class ExerciseState(ABC):
    """Fields shared by both state variants."""

    current_phase: BreathingPhase
    current_cycle: int                       # Cycle counter (reset on each new round)
    phase_time_remaining: int                # Counts down to 0
    total_time_elapsed: int = 0              # Counts up while running
    is_running: bool = False
    is_paused: bool = False

    @property
    @abstractmethod
    def is_round_based(self) -> bool:
        """Which regime the state belongs to."""
        pass

    @property
    def is_active(self) -> bool:
        """Whether a delivered tick may change this state."""
        return self.is_running and not self.is_paused

    def with_tick(self) -> "ExerciseState":
        """Count one tick down inside the current phase."""
        return replace(
            self,
            phase_time_remaining=self.phase_time_remaining - 1,
            total_time_elapsed=self.total_time_elapsed + 1
        )

    def with_phase(self, phase: BreathingPhase, duration: int, **changes) -> "ExerciseState":
        """Enter a new phase on the tick that ended the previous one."""
        return replace(
            self,
            current_phase=phase,
            phase_time_remaining=duration,
            total_time_elapsed=self.total_time_elapsed + 1,
            **changes
        )

    def with_completed(self, **changes) -> "ExerciseState":
        """Stop running on the tick that ended the last phase."""
        return replace(
            self,
            is_running=False,
            total_time_elapsed=self.total_time_elapsed + 1,
            **changes
        )

    def with_control(self, is_running: bool, is_paused: bool) -> "ExerciseState":
        """Copy with new run flags (start/pause/resume/stop)."""
        return replace(self, is_running=is_running, is_paused=is_paused)

    def summary(self) -> dict:
        """Flat dict for logging and host rendering."""
        return {
            "phase": self.current_phase.value,
            "cycle": self.current_cycle,
            "remaining": self.phase_time_remaining,
            "elapsed": self.total_time_elapsed,
            "running": self.is_running,
            "paused": self.is_paused,
        }


@dataclass(frozen=True)
class RoundExerciseState(ExerciseState):
    """State of a round-based practice."""

    round_cycle: int = 1                                 # 1-based cycle within the round
    current_round_index: int = 1
    total_rounds: int = 1
    current_hold_type: Optional[HoldType] = None
    previous_hold_type: Optional[HoldType] = None        # Hold the current phase follows
    lead_in: bool = False                                # Prepare-first countdown before round 1
    closing_inhale: bool = False                         # Inhale leading into an inhale-ending hold

    @property
    def is_round_based(self) -> bool:
        return True

    @property
    def is_last_round(self) -> bool:
        return self.current_round_index == self.total_rounds

    def summary(self) -> dict:
        data = super().summary()
        data.update({
            "round": self.current_round_index,
            "total_rounds": self.total_rounds,
            "round_cycle": self.round_cycle,
            "hold_type": self.current_hold_type.value if self.current_hold_type else None,
            "previous_hold_type": self.previous_hold_type.value if self.previous_hold_type else None,
        })
        return data


@dataclass(frozen=True)
class LegacyExerciseState(ExerciseState):
    """State of a flat-cycle practice without rounds."""

    in_final_hold: bool = False

    @property
    def is_round_based(self) -> bool:
        return False

    # Round fields read as absent so hosts can render either variant.
    @property
    def round_cycle(self) -> Optional[int]:
        return None

    @property
    def current_round_index(self) -> Optional[int]:
        return None

    @property
    def total_rounds(self) -> Optional[int]:
        return None

    @property
    def current_hold_type(self) -> Optional[HoldType]:
        return None

    @property
    def previous_hold_type(self) -> Optional[HoldType]:
        return None


@dataclass(frozen=True)
class TickResult:
    """Outcome of evaluating one tick: the next state plus signals to dispatch."""

    next_state: ExerciseState
    trigger: TransitionKind = TransitionKind.COUNTDOWN

    # Signals
    phase_changed_to: Optional[BreathingPhase] = None
    completed_cycle: Optional[int] = None
    exercise_completed: bool = False

    @property
    def phase_ended(self) -> bool:
        return self.trigger != TransitionKind.COUNTDOWN
