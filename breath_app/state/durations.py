"""
Phase duration resolution.

Pure functions answering "how many ticks does this phase instance last?" for a
practice, an optional round and the hold context. Unknown speed ids never
raise: resolution falls back to the practice-level durations.
"""

from typing import Optional

import structlog

from ..config.defaults import DEFAULTS
from ..data.models import PracticeConfig, RoundConfig
from .models import BreathingPhase, ExerciseState

logger = structlog.get_logger(__name__)


def base_phase_duration(
    phase: BreathingPhase,
    practice: PracticeConfig,
    is_final_hold: bool = False
) -> int:
    """Practice-level duration of a phase, ignoring rounds and speeds."""
    if phase == BreathingPhase.INHALE:
        return practice.inhale_duration
    if phase == BreathingPhase.EXHALE:
        return practice.exhale_duration
    if phase == BreathingPhase.HOLD:
        if is_final_hold and practice.final_hold_duration is not None:
            return practice.final_hold_duration
        return practice.hold_duration
    # Pause between rounds
    return practice.pause_duration or DEFAULTS.timing.default_pause_duration


def resolve_duration(
    phase: BreathingPhase,
    practice: PracticeConfig,
    round_cfg: Optional[RoundConfig] = None,
    is_final_hold: bool = False
) -> int:
    """
    Resolve the duration of one phase instance.

    Priority:
    1. Final hold of a round -> round.final_hold_duration
    2. Inhale/exhale inside a round with speeds configured -> the selected
       speed's inhale/exhale duration
    3. Practice-level fallback

    Args:
        phase: Phase being entered
        practice: Practice configuration
        round_cfg: Round the phase belongs to, if round-based
        is_final_hold: Whether a hold is the final hold of a round or practice

    Returns:
        Duration in ticks
    """
    if phase == BreathingPhase.HOLD and is_final_hold and round_cfg is not None:
        return round_cfg.final_hold_duration

    if phase in (BreathingPhase.INHALE, BreathingPhase.EXHALE) and round_cfg is not None \
            and practice.available_speeds:
        speed_id = practice.speed_id_for(round_cfg)
        speed = practice.get_speed(speed_id)
        if speed is not None:
            return speed.inhale_duration if phase == BreathingPhase.INHALE else speed.exhale_duration

        logger.debug(
            "Unknown breath speed, using practice durations",
            practice_id=practice.id,
            round_index=round_cfg.index,
            speed_id=speed_id,
            available=[s.id for s in practice.available_speeds]
        )

    return base_phase_duration(phase, practice, is_final_hold)


def special_transition_duration(base_duration: int, speed_id: Optional[str]) -> int:
    """
    Duration of a transitional breath (the inhale after a round-exhale hold or
    the exhale after an inhale hold).

    The fast speed takes a longer transitional breath; every other speed keeps
    its regular duration.
    """
    if speed_id == DEFAULTS.speed.transition_speed_id:
        return base_duration * DEFAULTS.speed.transition_multiplier
    return base_duration


def transition_duration(
    phase: BreathingPhase,
    practice: PracticeConfig,
    round_cfg: Optional[RoundConfig]
) -> int:
    """Resolved duration of a transitional inhale/exhale for the round's speed."""
    base = resolve_duration(phase, practice, round_cfg)
    return special_transition_duration(base, practice.speed_id_for(round_cfg))


def is_final_hold(state: ExerciseState, practice: PracticeConfig) -> bool:
    """
    Whether the state is in a final hold.

    Legacy practices: the hold on the last cycle when a final hold duration is
    configured. Round-based practices: any hold carrying a hold type.
    """
    if state.current_phase != BreathingPhase.HOLD:
        return False

    if not state.is_round_based:
        return state.current_cycle >= practice.cycles and practice.final_hold_duration is not None

    return state.current_hold_type is not None
