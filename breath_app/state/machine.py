"""
Core breathing state machine logic.

eval_exercise_tick() is a pure function of (state, practice): it never mutates
its inputs and returns the next state together with the signals the host
should be notified about. When a phase runs out, the state is classified once
into a (phase, marker) key and looked up in an explicit transition table; each
TransitionKind has exactly one handler.
"""

from enum import Enum
from typing import Callable, Optional

from ..config.defaults import DEFAULTS
from ..data.models import HoldPhase, PracticeConfig, RoundConfig
from ..errors import StateTransitionError
from ..logging.config import get_state_logger, log_state_transition
from .durations import resolve_duration, transition_duration
from .models import (
    BreathingPhase,
    ExerciseState,
    HoldType,
    LegacyExerciseState,
    RoundExerciseState,
    TickResult,
    TransitionKind,
)

state_logger = get_state_logger(__name__)


class PhaseMarker(str, Enum):
    """Context that tells otherwise identical phases apart."""
    PLAIN = "plain"                          # Ordinary phase before the last cycle
    LAST_CYCLE = "last_cycle"                # Ordinary phase of the round's last cycle
    LEAD_IN = "lead_in"                      # Prepare-first countdown
    INTER_ROUND = "inter_round"              # Pause between rounds
    CLOSING = "closing"                      # Inhale leading into an inhale-ending hold
    AFTER_EXHALE_HOLD = "after_exhale_hold"  # Transitional inhale after a round-exhale hold
    AFTER_INHALE_HOLD = "after_inhale_hold"  # Transitional exhale after an inhale hold
    EXHALE_HOLD = "exhale_hold"              # Round-exhale hold
    INHALE_HOLD = "inhale_hold"              # Inhale hold reached through the transitional inhale
    CLOSING_HOLD = "closing_hold"            # Hold ending an inhale-ending round
    FINAL_HOLD_DUE = "final_hold_due"        # Legacy: last exhale with a final hold configured
    FINAL_HOLD = "final_hold"                # Legacy: final hold
    UNCLASSIFIED = "unclassified"


ROUND_TRANSITIONS: dict[tuple[BreathingPhase, PhaseMarker], TransitionKind] = {
    (BreathingPhase.PAUSE, PhaseMarker.LEAD_IN): TransitionKind.ROUND_PAUSE_ENDED,
    (BreathingPhase.PAUSE, PhaseMarker.INTER_ROUND): TransitionKind.ROUND_PAUSE_ENDED,
    (BreathingPhase.HOLD, PhaseMarker.INHALE_HOLD): TransitionKind.INHALE_HOLD_ENDED,
    (BreathingPhase.HOLD, PhaseMarker.EXHALE_HOLD): TransitionKind.EXHALE_HOLD_ENDED,
    (BreathingPhase.HOLD, PhaseMarker.CLOSING_HOLD): TransitionKind.CLOSING_HOLD_ENDED,
    (BreathingPhase.EXHALE, PhaseMarker.LAST_CYCLE): TransitionKind.ROUND_CYCLES_DONE,
    (BreathingPhase.EXHALE, PhaseMarker.PLAIN): TransitionKind.NEXT_CYCLE,
    (BreathingPhase.INHALE, PhaseMarker.AFTER_EXHALE_HOLD): TransitionKind.RECOVERY_INHALE_ENDED,
    (BreathingPhase.INHALE, PhaseMarker.CLOSING): TransitionKind.CLOSING_INHALE_ENDED,
    (BreathingPhase.EXHALE, PhaseMarker.AFTER_INHALE_HOLD): TransitionKind.RECOVERY_EXHALE_ENDED,
    (BreathingPhase.INHALE, PhaseMarker.LAST_CYCLE): TransitionKind.NEXT_PHASE,
    (BreathingPhase.INHALE, PhaseMarker.PLAIN): TransitionKind.NEXT_PHASE,
}

LEGACY_TRANSITIONS: dict[tuple[BreathingPhase, PhaseMarker], TransitionKind] = {
    (BreathingPhase.INHALE, PhaseMarker.PLAIN): TransitionKind.LEGACY_NEXT_PHASE,
    (BreathingPhase.EXHALE, PhaseMarker.PLAIN): TransitionKind.LEGACY_NEXT_CYCLE,
    (BreathingPhase.EXHALE, PhaseMarker.FINAL_HOLD_DUE): TransitionKind.LEGACY_FINAL_HOLD,
    (BreathingPhase.EXHALE, PhaseMarker.LAST_CYCLE): TransitionKind.LEGACY_COMPLETE,
    (BreathingPhase.HOLD, PhaseMarker.FINAL_HOLD): TransitionKind.LEGACY_COMPLETE,
}


def eval_exercise_tick(state: ExerciseState, practice: PracticeConfig) -> TickResult:
    """
    Evaluate one tick.

    Args:
        state: Current exercise state (either variant)
        practice: Practice the state was created for

    Returns:
        TickResult with the next state and the signals to dispatch. A state
        that is not running or is paused is returned unchanged.

    Raises:
        StateTransitionError: The state cannot belong to this practice
    """
    if not state.is_active:
        return TickResult(next_state=state, trigger=TransitionKind.COUNTDOWN)

    if state.is_round_based != practice.is_round_based:
        raise StateTransitionError(
            "Exercise state variant does not match the practice",
            current_state=type(state).__name__,
            attempted_transition="tick",
            context={"practice_id": practice.id, "round_based": practice.is_round_based}
        )

    # Phase still running: count down only, no signals
    if state.phase_time_remaining - 1 > 0:
        return TickResult(next_state=state.with_tick())

    if state.is_round_based:
        result = _eval_round_phase_end(state, practice)
    else:
        result = _eval_legacy_phase_end(state, practice)

    log_state_transition(
        state_logger,
        practice_id=practice.id,
        from_phase=state.current_phase.value,
        to_phase=None if result.exercise_completed else result.next_state.current_phase.value,
        trigger=result.trigger.value,
        context=result.next_state.summary()
    )

    return result


# ---------------------------------------------------------------------------
# Round-based regime
# ---------------------------------------------------------------------------

def round_phase_marker(state: RoundExerciseState, round_cfg: RoundConfig) -> PhaseMarker:
    """Classify the phase that just ran out."""
    phase = state.current_phase
    last_cycle = state.round_cycle >= round_cfg.cycles
    previous = state.previous_hold_type

    if phase == BreathingPhase.PAUSE:
        return PhaseMarker.LEAD_IN if state.lead_in else PhaseMarker.INTER_ROUND

    if phase == BreathingPhase.HOLD:
        hold = state.current_hold_type
        if hold is None:
            return PhaseMarker.UNCLASSIFIED
        if round_cfg.final_hold_phase == HoldPhase.INHALE:
            return PhaseMarker.CLOSING_HOLD if hold.is_inhale_hold else PhaseMarker.UNCLASSIFIED
        return PhaseMarker.INHALE_HOLD if hold.is_inhale_hold else PhaseMarker.EXHALE_HOLD

    if phase == BreathingPhase.EXHALE:
        if not last_cycle:
            return PhaseMarker.PLAIN
        if previous is not None and previous.is_inhale_hold:
            return PhaseMarker.AFTER_INHALE_HOLD
        return PhaseMarker.LAST_CYCLE

    # Inhale
    if state.closing_inhale:
        return PhaseMarker.CLOSING
    if last_cycle and round_cfg.final_hold_phase == HoldPhase.EXHALE \
            and previous == HoldType.ROUND_EXHALE:
        return PhaseMarker.AFTER_EXHALE_HOLD
    return PhaseMarker.LAST_CYCLE if last_cycle else PhaseMarker.PLAIN


def classify_round_phase_end(state: RoundExerciseState, round_cfg: RoundConfig) -> TransitionKind:
    """Look the ended phase up in the round transition table."""
    marker = round_phase_marker(state, round_cfg)
    kind = ROUND_TRANSITIONS.get((state.current_phase, marker))
    if kind is None:
        raise StateTransitionError(
            f"No transition for {state.current_phase.value} ({marker.value})",
            current_state=state.current_phase.value,
            attempted_transition=marker.value,
            context=state.summary()
        )
    return kind


def _eval_round_phase_end(state: RoundExerciseState, practice: PracticeConfig) -> TickResult:
    round_cfg = practice.get_round(state.current_round_index)
    if round_cfg is None:
        raise StateTransitionError(
            f"Round {state.current_round_index} is not configured",
            current_state=state.current_phase.value,
            attempted_transition="phase_end",
            context={"practice_id": practice.id, "total_rounds": practice.total_rounds}
        )

    kind = classify_round_phase_end(state, round_cfg)
    return ROUND_HANDLERS[kind](state, practice, round_cfg)


def _complete(state: ExerciseState, trigger: TransitionKind, **changes) -> TickResult:
    return TickResult(
        next_state=state.with_completed(**changes),
        trigger=trigger,
        exercise_completed=True
    )


def _enter_round(
    state: RoundExerciseState,
    practice: PracticeConfig,
    round_index: int,
    trigger: TransitionKind
) -> TickResult:
    """Start the first cycle of a round with a fresh hold history."""
    next_round = practice.get_round(round_index)
    if next_round is None:
        raise StateTransitionError(
            f"Round {round_index} is not configured",
            current_state=state.current_phase.value,
            attempted_transition=trigger.value,
            context={"practice_id": practice.id}
        )

    next_state = state.with_phase(
        BreathingPhase.INHALE,
        resolve_duration(BreathingPhase.INHALE, practice, next_round),
        current_round_index=round_index,
        round_cycle=1,
        current_cycle=1,
        current_hold_type=None,
        previous_hold_type=None,
        lead_in=False,
        closing_inhale=False,
    )
    return TickResult(next_state=next_state, trigger=trigger, phase_changed_to=BreathingPhase.INHALE)


def _finish_round(
    state: RoundExerciseState,
    practice: PracticeConfig,
    trigger: TransitionKind,
    **completion_changes
) -> TickResult:
    """Complete the exercise after the last round, otherwise enter the next round."""
    if state.is_last_round:
        return _complete(state, trigger, current_hold_type=None, closing_inhale=False, **completion_changes)
    return _enter_round(state, practice, state.current_round_index + 1, trigger)


def _on_round_pause_ended(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    if state.lead_in:
        return _enter_round(state, practice, state.current_round_index, TransitionKind.ROUND_PAUSE_ENDED)
    return _finish_round(state, practice, TransitionKind.ROUND_PAUSE_ENDED)


def _on_inhale_hold_ended(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    next_state = state.with_phase(
        BreathingPhase.EXHALE,
        transition_duration(BreathingPhase.EXHALE, practice, round_cfg),
        current_hold_type=None,
        previous_hold_type=state.current_hold_type,
    )
    return TickResult(
        next_state=next_state,
        trigger=TransitionKind.INHALE_HOLD_ENDED,
        phase_changed_to=BreathingPhase.EXHALE
    )


def _on_exhale_hold_ended(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    next_state = state.with_phase(
        BreathingPhase.INHALE,
        transition_duration(BreathingPhase.INHALE, practice, round_cfg),
        current_hold_type=None,
        previous_hold_type=HoldType.ROUND_EXHALE,
    )
    return TickResult(
        next_state=next_state,
        trigger=TransitionKind.EXHALE_HOLD_ENDED,
        phase_changed_to=BreathingPhase.INHALE
    )


def _on_closing_hold_ended(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    return _finish_round(
        state,
        practice,
        TransitionKind.CLOSING_HOLD_ENDED,
        previous_hold_type=state.current_hold_type
    )


def _on_round_cycles_done(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    if round_cfg.final_hold_phase == HoldPhase.EXHALE:
        next_state = state.with_phase(
            BreathingPhase.HOLD,
            resolve_duration(BreathingPhase.HOLD, practice, round_cfg, is_final_hold=True),
            round_cycle=round_cfg.cycles,
            current_hold_type=HoldType.ROUND_EXHALE,
        )
        return TickResult(
            next_state=next_state,
            trigger=TransitionKind.ROUND_CYCLES_DONE,
            phase_changed_to=BreathingPhase.HOLD
        )

    # Inhale-ending round: breathe in once more, then hold
    next_state = state.with_phase(
        BreathingPhase.INHALE,
        resolve_duration(BreathingPhase.INHALE, practice, round_cfg),
        round_cycle=round_cfg.cycles,
        closing_inhale=True,
    )
    return TickResult(
        next_state=next_state,
        trigger=TransitionKind.ROUND_CYCLES_DONE,
        phase_changed_to=BreathingPhase.INHALE
    )


def _on_next_cycle(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    next_state = state.with_phase(
        BreathingPhase.INHALE,
        resolve_duration(BreathingPhase.INHALE, practice, round_cfg),
        round_cycle=state.round_cycle + 1,
        current_cycle=state.current_cycle + 1,
        current_hold_type=None,
    )
    return TickResult(
        next_state=next_state,
        trigger=TransitionKind.NEXT_CYCLE,
        phase_changed_to=BreathingPhase.INHALE,
        completed_cycle=state.current_cycle
    )


def _enter_inhale_hold(
    state: RoundExerciseState,
    hold_type: HoldType,
    duration: int,
    trigger: TransitionKind
) -> TickResult:
    next_state = state.with_phase(
        BreathingPhase.HOLD,
        duration,
        current_hold_type=hold_type,
        closing_inhale=False,
    )
    return TickResult(next_state=next_state, trigger=trigger, phase_changed_to=BreathingPhase.HOLD)


def _on_recovery_inhale_ended(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    hold_type = HoldType.GLOBAL_INHALE if state.is_last_round else HoldType.ROUND_INHALE
    duration = practice.global_inhale_hold_duration
    if duration is None:
        duration = round_cfg.final_hold_duration
    return _enter_inhale_hold(state, hold_type, duration, TransitionKind.RECOVERY_INHALE_ENDED)


def _on_closing_inhale_ended(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    if state.is_last_round and practice.global_inhale_hold_duration is not None:
        return _enter_inhale_hold(
            state,
            HoldType.GLOBAL_INHALE,
            practice.global_inhale_hold_duration,
            TransitionKind.CLOSING_INHALE_ENDED
        )
    return _enter_inhale_hold(
        state,
        HoldType.ROUND_INHALE,
        round_cfg.final_hold_duration,
        TransitionKind.CLOSING_INHALE_ENDED
    )


def _on_recovery_exhale_ended(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    if state.is_last_round:
        return _complete(
            state,
            TransitionKind.RECOVERY_EXHALE_ENDED,
            current_hold_type=None,
            previous_hold_type=None
        )

    # The host owns the visible delay between rounds
    next_state = state.with_phase(
        BreathingPhase.PAUSE,
        DEFAULTS.timing.inter_round_pause_duration,
        current_hold_type=None,
        previous_hold_type=None,
    )
    return TickResult(
        next_state=next_state,
        trigger=TransitionKind.RECOVERY_EXHALE_ENDED,
        phase_changed_to=BreathingPhase.PAUSE
    )


def _on_next_phase(
    state: RoundExerciseState, practice: PracticeConfig, round_cfg: RoundConfig
) -> TickResult:
    next_state = state.with_phase(
        BreathingPhase.EXHALE,
        resolve_duration(BreathingPhase.EXHALE, practice, round_cfg),
        current_hold_type=None,
    )
    return TickResult(
        next_state=next_state,
        trigger=TransitionKind.NEXT_PHASE,
        phase_changed_to=BreathingPhase.EXHALE
    )


RoundHandler = Callable[[RoundExerciseState, PracticeConfig, RoundConfig], TickResult]

ROUND_HANDLERS: dict[TransitionKind, RoundHandler] = {
    TransitionKind.ROUND_PAUSE_ENDED: _on_round_pause_ended,
    TransitionKind.INHALE_HOLD_ENDED: _on_inhale_hold_ended,
    TransitionKind.EXHALE_HOLD_ENDED: _on_exhale_hold_ended,
    TransitionKind.CLOSING_HOLD_ENDED: _on_closing_hold_ended,
    TransitionKind.ROUND_CYCLES_DONE: _on_round_cycles_done,
    TransitionKind.NEXT_CYCLE: _on_next_cycle,
    TransitionKind.RECOVERY_INHALE_ENDED: _on_recovery_inhale_ended,
    TransitionKind.CLOSING_INHALE_ENDED: _on_closing_inhale_ended,
    TransitionKind.RECOVERY_EXHALE_ENDED: _on_recovery_exhale_ended,
    TransitionKind.NEXT_PHASE: _on_next_phase,
}


# ---------------------------------------------------------------------------
# Legacy flat-cycle regime
# ---------------------------------------------------------------------------

def legacy_phase_marker(state: LegacyExerciseState, practice: PracticeConfig) -> PhaseMarker:
    """Classify the phase that just ran out (practices without rounds)."""
    phase = state.current_phase

    if phase == BreathingPhase.HOLD:
        return PhaseMarker.FINAL_HOLD if state.in_final_hold else PhaseMarker.UNCLASSIFIED

    if phase == BreathingPhase.EXHALE and state.current_cycle >= practice.cycles:
        if practice.final_hold_duration is not None and not state.in_final_hold:
            return PhaseMarker.FINAL_HOLD_DUE
        return PhaseMarker.LAST_CYCLE

    if phase in (BreathingPhase.INHALE, BreathingPhase.EXHALE):
        return PhaseMarker.PLAIN

    return PhaseMarker.UNCLASSIFIED


def classify_legacy_phase_end(state: LegacyExerciseState, practice: PracticeConfig) -> TransitionKind:
    """Look the ended phase up in the legacy transition table."""
    marker = legacy_phase_marker(state, practice)
    kind = LEGACY_TRANSITIONS.get((state.current_phase, marker))
    if kind is None:
        raise StateTransitionError(
            f"No legacy transition for {state.current_phase.value} ({marker.value})",
            current_state=state.current_phase.value,
            attempted_transition=marker.value,
            context=state.summary()
        )
    return kind


def _eval_legacy_phase_end(state: LegacyExerciseState, practice: PracticeConfig) -> TickResult:
    kind = classify_legacy_phase_end(state, practice)

    if kind == TransitionKind.LEGACY_COMPLETE:
        return _complete(state, kind)

    if kind == TransitionKind.LEGACY_FINAL_HOLD:
        next_state = state.with_phase(
            BreathingPhase.HOLD,
            resolve_duration(BreathingPhase.HOLD, practice, is_final_hold=True),
            in_final_hold=True,
        )
        return TickResult(next_state=next_state, trigger=kind, phase_changed_to=BreathingPhase.HOLD)

    if kind == TransitionKind.LEGACY_NEXT_CYCLE:
        next_state = state.with_phase(
            BreathingPhase.INHALE,
            resolve_duration(BreathingPhase.INHALE, practice),
            current_cycle=state.current_cycle + 1,
        )
        return TickResult(
            next_state=next_state,
            trigger=kind,
            phase_changed_to=BreathingPhase.INHALE,
            completed_cycle=state.current_cycle
        )

    next_state = state.with_phase(
        BreathingPhase.EXHALE,
        resolve_duration(BreathingPhase.EXHALE, practice),
    )
    return TickResult(next_state=next_state, trigger=kind, phase_changed_to=BreathingPhase.EXHALE)


def initial_state(
    practice: PracticeConfig,
    prepare_first: bool = False,
    is_running: bool = True
) -> ExerciseState:
    """
    Start-of-practice snapshot.

    Round-based practices start on the first round's inhale, or on a lead-in
    pause when prepare_first is set. Legacy practices always start on inhale.
    """
    if not practice.is_round_based:
        return LegacyExerciseState(
            current_phase=BreathingPhase.INHALE,
            current_cycle=1,
            phase_time_remaining=resolve_duration(BreathingPhase.INHALE, practice),
            is_running=is_running,
        )

    first_round = practice.rounds[0]
    if prepare_first:
        phase = BreathingPhase.PAUSE
        duration = DEFAULTS.timing.lead_in_duration
    else:
        phase = BreathingPhase.INHALE
        duration = resolve_duration(BreathingPhase.INHALE, practice, first_round)

    return RoundExerciseState(
        current_phase=phase,
        current_cycle=1,
        phase_time_remaining=duration,
        is_running=is_running,
        round_cycle=1,
        current_round_index=first_round.index,
        total_rounds=practice.total_rounds,
        lead_in=prepare_first,
    )


def describe_transition(result: TickResult) -> Optional[str]:
    """Short human-readable description of a fired transition, None for countdown ticks."""
    if not result.phase_ended:
        return None
    if result.exercise_completed:
        return f"{result.trigger.value}: exercise complete"
    return f"{result.trigger.value}: -> {result.next_state.current_phase.value}"
