"""
Runtime management for a breathing exercise.

BreathingExercise owns the current immutable state snapshot, serializes
control calls and ticks, and dispatches host callbacks for every signal a
tick produces.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional

from ..config.validation import ensure_runnable
from ..data.models import PracticeConfig
from ..errors import ConfigurationError
from ..logging.config import get_control_logger
from .machine import describe_transition, initial_state
from .models import BreathingPhase, ExerciseState
from .transitions import transition_handler

logger = get_control_logger(__name__)


@dataclass(frozen=True)
class ExerciseCallbacks:
    """Host notifications; every callback is optional."""
    on_start: Optional[Callable[[], None]] = None
    on_pause: Optional[Callable[[], None]] = None
    on_resume: Optional[Callable[[], None]] = None
    on_stop: Optional[Callable[[], None]] = None
    on_complete: Optional[Callable[[], None]] = None
    on_phase_change: Optional[Callable[[BreathingPhase], None]] = None
    on_cycle_complete: Optional[Callable[[int], None]] = None


class BreathingExercise:
    """Run-control surface for one practice."""

    def __init__(self, practice: PracticeConfig, callbacks: Optional[ExerciseCallbacks] = None):
        self.logger = logger
        self.practice = practice
        self.callbacks = callbacks or ExerciseCallbacks()
        self._lock = threading.RLock()
        self._state = initial_state(practice, is_running=False)

    @property
    def state(self) -> ExerciseState:
        """Current read-only snapshot."""
        return self._state

    def _ignore(self, action: str) -> ExerciseState:
        self.logger.debug(
            "Control call ignored",
            practice_id=self.practice.id,
            action=action,
            running=self._state.is_running,
            paused=self._state.is_paused
        )
        return self._state

    def _notify(self, name: str, *args) -> None:
        """Invoke a host callback; exceptions are logged and propagated."""
        callback = getattr(self.callbacks, name)
        if callback is None:
            return

        try:
            callback(*args)
        except Exception as e:
            self.logger.error(
                "Callback raised",
                practice_id=self.practice.id,
                callback=name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
            raise

    def _validate(self, action: str) -> None:
        try:
            ensure_runnable(self.practice)
        except ConfigurationError as e:
            self.logger.error(
                "Practice rejected",
                practice_id=self.practice.id,
                action=action,
                error=str(e),
                error_type=type(e).__name__,
                context=e.context
            )
            raise

    def start(self, prepare_first: bool = False) -> ExerciseState:
        """
        Start the exercise from the beginning.

        Args:
            prepare_first: Begin with a lead-in pause before round 1
                (round-based practices only)

        Returns:
            The new state snapshot

        Raises:
            InvalidRoundError: The practice has a round that cannot be run
        """
        with self._lock:
            if self._state.is_running:
                return self._ignore("start")

            self._validate("start")
            self._state = initial_state(
                self.practice,
                prepare_first=prepare_first and self.practice.is_round_based,
                is_running=True
            )

            self.logger.info(
                "Exercise started",
                practice_id=self.practice.id,
                prepare_first=prepare_first,
                **self._state.summary()
            )
            self._notify("on_start")
            return self._state

    def pause(self) -> ExerciseState:
        """Freeze the exercise; ticks are ignored until resume()."""
        with self._lock:
            if not self._state.is_running or self._state.is_paused:
                return self._ignore("pause")

            self._state = self._state.with_control(is_running=True, is_paused=True)
            self.logger.info("Exercise paused", practice_id=self.practice.id, **self._state.summary())
            self._notify("on_pause")
            return self._state

    def resume(self) -> ExerciseState:
        """Continue a paused exercise."""
        with self._lock:
            if not self._state.is_running or not self._state.is_paused:
                return self._ignore("resume")

            self._state = self._state.with_control(is_running=True, is_paused=False)
            self.logger.info("Exercise resumed", practice_id=self.practice.id, **self._state.summary())
            self._notify("on_resume")
            return self._state

    def stop(self) -> ExerciseState:
        """Stop the exercise, keeping its counters."""
        with self._lock:
            if not self._state.is_running:
                return self._ignore("stop")

            self._state = self._state.with_control(is_running=False, is_paused=False)
            self.logger.info("Exercise stopped", practice_id=self.practice.id, **self._state.summary())
            self._notify("on_stop")
            return self._state

    def reset(self) -> ExerciseState:
        """Return to the start-of-practice snapshot without running."""
        with self._lock:
            self._validate("reset")
            self._state = initial_state(self.practice, is_running=False)
            self.logger.info("Exercise reset", practice_id=self.practice.id)
            return self._state

    def tick(self) -> ExerciseState:
        """
        Advance the exercise by one time unit.

        A tick while not running or paused returns the unchanged state.
        """
        with self._lock:
            if not self._state.is_active:
                return self._state

            result = transition_handler.evaluate_tick(self._state, self.practice)
            self._state = result.next_state

            if result.phase_ended:
                self.logger.debug(
                    "Tick",
                    practice_id=self.practice.id,
                    transition=describe_transition(result),
                    elapsed=self._state.total_time_elapsed
                )

            if result.phase_changed_to is not None:
                self._notify("on_phase_change", result.phase_changed_to)
            if result.completed_cycle is not None:
                self._notify("on_cycle_complete", result.completed_cycle)
            if result.exercise_completed:
                self.logger.info(
                    "Exercise completed",
                    practice_id=self.practice.id,
                    **self._state.summary()
                )
                self._notify("on_complete")

            return self._state
