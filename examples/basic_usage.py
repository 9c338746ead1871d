#!/usr/bin/env python3
"""
Basic Usage Example - Breath App Phase Scheduler

This script demonstrates the basic usage of the breathing scheduler. It shows
how to:
- Define a practice in code and load one from the catalog
- Register callbacks for phase changes, cycles and completion
- Drive the exercise tick by tick, and with the threaded driver

Run: python examples/basic_usage.py
"""

from breath_app.data.models import HoldPhase, PracticeConfig, RoundConfig
from breath_app.engine import ExerciseDriver, create_exercise
from breath_app.logging import configure_logging
from breath_app.state.models import BreathingPhase
from breath_app.state.runtime import BreathingExercise, ExerciseCallbacks


def create_sample_practice() -> PracticeConfig:
    """Two short rounds: one ending on an exhale hold, one on an inhale hold."""
    return PracticeConfig(
        id="sample",
        name="Sample",
        cycles=2,
        inhale_duration=2,
        exhale_duration=2,
        hold_duration=1,
        global_inhale_hold_duration=3,
        rounds=(
            RoundConfig(index=1, cycles=2, final_hold_phase=HoldPhase.EXHALE, final_hold_duration=4),
            RoundConfig(index=2, cycles=1, final_hold_phase=HoldPhase.INHALE, final_hold_duration=3),
        ),
    )


def print_phase(phase: BreathingPhase) -> None:
    print(f"  -> {phase.value}")


def print_cycle(cycle: int) -> None:
    print(f"  ✓ cycle {cycle} complete")


def run_manually(exercise: BreathingExercise) -> None:
    """Deliver ticks from the caller's loop."""
    exercise.start()
    ticks = 0
    while exercise.state.is_running:
        exercise.tick()
        ticks += 1
    print(f"📊 Finished after {ticks} ticks, elapsed={exercise.state.total_time_elapsed}")


def main() -> None:
    configure_logging(level="WARNING")

    callbacks = ExerciseCallbacks(
        on_start=lambda: print("▶️  started"),
        on_phase_change=print_phase,
        on_cycle_complete=print_cycle,
        on_complete=lambda: print("🎉 complete"),
    )

    print("🫁 Sample practice, manual ticks")
    run_manually(BreathingExercise(create_sample_practice(), callbacks))

    print("\n🫁 Catalog practice 'beginner' (shortened), threaded driver")
    exercise = create_exercise(
        "beginner",
        callbacks=callbacks,
        overrides={"rounds": [
            {"cycles": 2, "finalHoldPhase": "exhale", "finalHoldDuration": 3, "breathSpeedId": "ice-man"},
        ]},
    )
    driver = ExerciseDriver(exercise, interval=0.01)
    driver.start(prepare_first=True)
    driver.join(timeout=10)
    print(f"📊 Driver delivered {driver.ticks_delivered} ticks")


if __name__ == "__main__":
    main()
