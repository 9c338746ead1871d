"""Pytest configuration and shared fixtures."""

import pytest
from types import SimpleNamespace
from typing import Any, Callable

from breath_app.data.models import HoldPhase, PracticeConfig, RoundConfig, SpeedConfig
from breath_app.state.machine import eval_exercise_tick
from breath_app.state.models import ExerciseState


ICE_MAN = SpeedConfig(id="ice-man", inhale_duration=2, exhale_duration=2, name="Ice Man")
SPACE_MAN = SpeedConfig(id="space-man", inhale_duration=4, exhale_duration=4, name="Space Man")


def exhale_round(index: int, cycles: int = 1, hold: int = 2, speed: str = "ice-man") -> RoundConfig:
    return RoundConfig(
        index=index,
        cycles=cycles,
        final_hold_phase=HoldPhase.EXHALE,
        final_hold_duration=hold,
        breath_speed_id=speed,
    )


def inhale_round(index: int, cycles: int = 1, hold: int = 3, speed: str = "ice-man") -> RoundConfig:
    return RoundConfig(
        index=index,
        cycles=cycles,
        final_hold_phase=HoldPhase.INHALE,
        final_hold_duration=hold,
        breath_speed_id=speed,
    )


def round_practice(*rounds: RoundConfig, **overrides: Any) -> PracticeConfig:
    params = dict(
        id="test-practice",
        cycles=1,
        inhale_duration=4,
        exhale_duration=4,
        hold_duration=2,
        rounds=tuple(rounds),
        available_speeds=(SPACE_MAN, ICE_MAN),
        default_speed_id="ice-man",
    )
    params.update(overrides)
    return PracticeConfig(**params)


@pytest.fixture
def single_exhale_round_practice() -> PracticeConfig:
    """One single-cycle round ending in a 2-unit exhale hold, ice-man speed."""
    return round_practice(exhale_round(1))


@pytest.fixture
def two_exhale_round_practice() -> PracticeConfig:
    """Two single-cycle exhale-hold rounds with a 15-unit global inhale hold."""
    return round_practice(exhale_round(1), exhale_round(2), global_inhale_hold_duration=15)


@pytest.fixture
def single_inhale_round_practice() -> PracticeConfig:
    """One single-cycle round ending in a 3-unit inhale hold, no global hold."""
    return round_practice(inhale_round(1))


@pytest.fixture
def multi_cycle_practice() -> PracticeConfig:
    """Two rounds of three cycles each."""
    return round_practice(
        exhale_round(1, cycles=3, hold=5),
        inhale_round(2, cycles=3, hold=4),
        global_inhale_hold_duration=6,
    )


@pytest.fixture
def legacy_practice() -> PracticeConfig:
    """Flat-cycle practice: two cycles then a 3-unit final hold."""
    return PracticeConfig(
        id="legacy",
        cycles=2,
        inhale_duration=2,
        exhale_duration=3,
        hold_duration=1,
        final_hold_duration=3,
    )


@pytest.fixture
def raw_practice() -> dict[str, Any]:
    """Host-supplied practice mapping in camelCase."""
    return {
        "id": "raw",
        "name": "Raw Practice",
        "cycles": 2,
        "inhaleDuration": 4,
        "exhaleDuration": 4,
        "holdDuration": 2,
        "pauseDuration": 5,
        "globalInhaleHoldDuration": 10,
        "defaultSpeedId": "ice-man",
        "availableSpeeds": [
            {"id": "space-man", "inhaleDuration": 4, "exhaleDuration": 4},
            {"id": "ice-man", "inhaleDuration": 2, "exhaleDuration": 2},
        ],
        "rounds": [
            {"index": 1, "cycles": 2, "finalHoldPhase": "exhale", "finalHoldDuration": 20},
            {"index": 2, "cycles": 2, "finalHoldPhase": "inhale", "finalHoldDuration": 15,
             "breathSpeedId": "space-man"},
        ],
    }


@pytest.fixture
def advance() -> Callable[[ExerciseState, PracticeConfig, int], ExerciseState]:
    """Apply n ticks through the pure evaluator and return the final state."""
    def _advance(state: ExerciseState, practice: PracticeConfig, ticks: int) -> ExerciseState:
        for _ in range(ticks):
            state = eval_exercise_tick(state, practice).next_state
        return state
    return _advance


@pytest.fixture
def builders() -> SimpleNamespace:
    """Practice builders for tests that need custom rounds."""
    return SimpleNamespace(
        exhale_round=exhale_round,
        inhale_round=inhale_round,
        practice=round_practice,
        ice_man=ICE_MAN,
        space_man=SPACE_MAN,
    )
