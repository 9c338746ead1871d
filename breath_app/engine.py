"""
Tick driver for breathing exercises.

Delivers one tick per time unit to a BreathingExercise from a background
thread. Pause and resume gate ticks inside the exercise; the driver keeps
ticking until the exercise stops running or the driver is stopped.
"""

import threading
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from .config.defaults import DEFAULTS
from .config.loader import PracticeLoader
from .state.runtime import BreathingExercise, ExerciseCallbacks

logger = structlog.get_logger(__name__)


class ExerciseDriver:
    """Periodic tick source for one exercise."""

    def __init__(
        self,
        exercise: BreathingExercise,
        interval: float = DEFAULTS.timing.tick_interval_seconds,
        wait: Optional[Callable[[float], bool]] = None
    ) -> None:
        """
        Args:
            exercise: Exercise to drive
            interval: Seconds between ticks
            wait: Replacement for Event.wait(interval); returns True to stop
        """
        self.logger = logger
        self.exercise = exercise
        self.interval = interval
        self._stop_event = threading.Event()
        self._wait = wait or self._stop_event.wait
        self._thread: Optional[threading.Thread] = None
        self.ticks_delivered = 0
        self.error: Optional[BaseException] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, prepare_first: bool = False) -> None:
        """Start the exercise (unless already running) and the tick thread."""
        if self.is_running:
            self.logger.debug("Driver already running", practice_id=self.exercise.practice.id)
            return

        if not self.exercise.state.is_running:
            self.exercise.start(prepare_first=prepare_first)

        self._stop_event.clear()
        self.error = None
        self._thread = threading.Thread(
            target=self._run,
            name=f"breath-driver-{self.exercise.practice.id}",
            daemon=True
        )
        self._thread.start()

        self.logger.info(
            "Tick driver started",
            practice_id=self.exercise.practice.id,
            interval=self.interval
        )

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                if self._wait(self.interval) or self._stop_event.is_set():
                    break

                state = self.exercise.tick()
                self.ticks_delivered += 1

                if not state.is_running:
                    break
        except Exception as e:
            self.error = e
            self.logger.error(
                "Tick driver failed",
                practice_id=self.exercise.practice.id,
                ticks_delivered=self.ticks_delivered,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True
            )
        finally:
            self.logger.info(
                "Tick driver exited",
                practice_id=self.exercise.practice.id,
                ticks_delivered=self.ticks_delivered
            )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel the tick thread; the exercise itself is left as is."""
        self._stop_event.set()
        self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the tick thread to exit."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


def create_exercise(
    practice_id: str,
    callbacks: Optional[ExerciseCallbacks] = None,
    overrides: Optional[dict[str, Any]] = None,
    config_dir: Optional[Path] = None,
    cycles: Optional[int] = None,
    speed_id: Optional[str] = None
) -> BreathingExercise:
    """
    Build an exercise for a catalog practice.

    Args:
        practice_id: Catalog id of the practice
        callbacks: Host callbacks
        overrides: Raw mapping merged over the catalog entry
        config_dir: Directory holding the catalog, bundled catalog if None
        cycles: Cycles per round for this session
        speed_id: Breath speed applied to every round for this session
    """
    loader = PracticeLoader.create(config_dir)
    practice = loader.load_practice_overrides(practice_id, overrides).with_session(cycles, speed_id)

    if cycles is not None or speed_id is not None:
        logger.info(
            "Applied session settings",
            practice_id=practice_id,
            cycles=cycles,
            speed_id=speed_id
        )

    return BreathingExercise(practice, callbacks)
