"""
State transition handler for breathing exercises.

This module wraps the pure tick evaluator with input validation, result
consistency checks and error logging.
"""

import structlog

from ..data.models import PracticeConfig
from ..errors import InvalidRoundError, StateTransitionError
from .machine import eval_exercise_tick
from .models import BreathingPhase, ExerciseState, TickResult

logger = structlog.get_logger(__name__)


class StateTransitionHandler:
    """Evaluates ticks with validation and logging."""

    def __init__(self):
        self.logger = logger

    def _validate_tick_inputs(self, state: ExerciseState, practice: PracticeConfig) -> None:
        """Validate that the state can be evaluated against the practice."""
        if state is None:
            raise StateTransitionError(
                "Current state is required for evaluation",
                current_state=None,
                attempted_transition="tick"
            )

        if practice is None:
            raise StateTransitionError(
                "Practice configuration is required for evaluation",
                current_state=state.current_phase.value,
                attempted_transition="tick"
            )

        if state.is_round_based != practice.is_round_based:
            raise StateTransitionError(
                "Exercise state variant does not match the practice",
                current_state=type(state).__name__,
                attempted_transition="tick",
                context={"practice_id": practice.id}
            )

        if state.phase_time_remaining < 0:
            raise StateTransitionError(
                f"Negative phase time remaining: {state.phase_time_remaining}",
                current_state=state.current_phase.value,
                attempted_transition="tick"
            )

        if state.is_round_based:
            if practice.get_round(state.current_round_index) is None:
                raise StateTransitionError(
                    f"Round {state.current_round_index} is not configured",
                    current_state=state.current_phase.value,
                    attempted_transition="tick",
                    context={"practice_id": practice.id, "total_rounds": practice.total_rounds}
                )

    def _validate_result(self, state: ExerciseState, result: TickResult) -> None:
        """Check the consistency rules every tick result must satisfy."""
        next_state = result.next_state

        if next_state.phase_time_remaining < 0:
            raise StateTransitionError(
                f"Transition produced negative phase time: {next_state.phase_time_remaining}",
                current_state=state.current_phase.value,
                attempted_transition=result.trigger.value
            )

        if next_state.total_time_elapsed < state.total_time_elapsed:
            raise StateTransitionError(
                "Total elapsed time went backwards",
                current_state=state.current_phase.value,
                attempted_transition=result.trigger.value
            )

        if result.phase_changed_to is not None and result.phase_changed_to != next_state.current_phase:
            raise StateTransitionError(
                f"Signalled phase {result.phase_changed_to.value} does not match "
                f"next phase {next_state.current_phase.value}",
                current_state=state.current_phase.value,
                attempted_transition=result.trigger.value
            )

        if next_state.current_phase != BreathingPhase.HOLD and next_state.current_hold_type is not None:
            raise StateTransitionError(
                "Hold type set outside a hold phase",
                current_state=next_state.current_phase.value,
                attempted_transition=result.trigger.value
            )

    def evaluate_tick(self, state: ExerciseState, practice: PracticeConfig) -> TickResult:
        """
        Evaluate one tick and return the validated result.

        Args:
            state: Current exercise state
            practice: Practice the exercise runs

        Returns:
            TickResult for this tick
        """
        practice_id = practice.id if practice else "unknown"

        try:
            self._validate_tick_inputs(state, practice)

            result = eval_exercise_tick(state, practice)

            self._validate_result(state, result)

            if result.phase_ended:
                self.logger.debug(
                    "Phase ended",
                    practice_id=practice_id,
                    transition_type=result.trigger.value,
                    from_phase=state.current_phase.value,
                    to_phase=result.next_state.current_phase.value,
                    completed_cycle=result.completed_cycle,
                    exercise_completed=result.exercise_completed
                )

            return result

        except (StateTransitionError, InvalidRoundError) as e:
            self.logger.error(
                "Tick evaluation failed",
                practice_id=practice_id,
                current_state=state.summary() if state else None,
                error=str(e),
                error_type=type(e).__name__
            )
            raise
        except Exception as e:
            # Wrap unexpected errors in StateTransitionError
            self.logger.error(
                "Unexpected error during tick evaluation",
                practice_id=practice_id,
                current_state=state.summary() if state else None,
                error=str(e),
                error_type=type(e).__name__
            )
            raise StateTransitionError(
                f"Unexpected error during tick evaluation: {e}",
                current_state=state.current_phase.value if state else None,
                attempted_transition="tick"
            ) from e


# Module-level instance for convenience
transition_handler = StateTransitionHandler()
