"""Tests for session-wide cycle count and speed selection."""

import pytest

from breath_app.config.loader import PracticeLoader
from breath_app.engine import create_exercise
from breath_app.state.models import BreathingPhase, HoldType
from breath_app.state.runtime import BreathingExercise


class TestWithSession:
    """Test PracticeConfig.with_session."""

    def test_applies_to_every_round(self):
        practice = PracticeLoader.create().get_practice("beginner")

        session = practice.with_session(cycles=5, speed_id="space-man")

        assert [r.cycles for r in session.rounds] == [5, 5, 5]
        assert [session.speed_id_for(r) for r in session.rounds] == ["space-man"] * 3
        # Everything else per round is kept
        assert [r.final_hold_duration for r in session.rounds] == [30, 60, 90]
        assert [r.index for r in session.rounds] == [1, 2, 3]
        # The catalog practice is untouched
        assert [practice.speed_id_for(r) for r in practice.rounds] == ["ice-man"] * 3
        assert [r.cycles for r in practice.rounds] == [30, 30, 30]

    def test_cycles_only(self, two_exhale_round_practice):
        session = two_exhale_round_practice.with_session(cycles=4)

        assert [r.cycles for r in session.rounds] == [4, 4]
        assert [r.breath_speed_id for r in session.rounds] == ["ice-man", "ice-man"]

    def test_speed_only(self, multi_cycle_practice):
        session = multi_cycle_practice.with_session(speed_id="space-man")

        assert [r.cycles for r in session.rounds] == [3, 3]
        assert [r.breath_speed_id for r in session.rounds] == ["space-man", "space-man"]

    def test_nothing_selected_returns_same_practice(self, multi_cycle_practice):
        assert multi_cycle_practice.with_session() is multi_cycle_practice

    def test_legacy_practice_unchanged(self, legacy_practice):
        assert legacy_practice.with_session(cycles=10, speed_id="space-man") is legacy_practice


class TestSessionRun:
    """Run exercises built with session settings."""

    def test_create_exercise_with_session(self):
        exercise = create_exercise("beginner", cycles=2, speed_id="space-man")

        assert [r.cycles for r in exercise.practice.rounds] == [2, 2, 2]
        assert [r.breath_speed_id for r in exercise.practice.rounds] == ["space-man"] * 3

    def test_space_man_transitional_breath_not_doubled(self):
        exercise = create_exercise("beginner", cycles=1, speed_id="space-man")
        exercise.start()
        assert exercise.state.phase_time_remaining == 4

        # inhale 4, exhale 4, round-exhale hold 30
        for _ in range(4 + 4 + 30):
            exercise.tick()

        state = exercise.state
        assert state.current_phase == BreathingPhase.INHALE
        assert state.previous_hold_type == HoldType.ROUND_EXHALE
        assert state.phase_time_remaining == 4

    def test_ice_man_transitional_breath_doubled(self):
        exercise = create_exercise("beginner", cycles=1, speed_id="ice-man")
        exercise.start()
        assert exercise.state.phase_time_remaining == 2

        for _ in range(2 + 2 + 30):
            exercise.tick()

        assert exercise.state.current_phase == BreathingPhase.INHALE
        assert exercise.state.phase_time_remaining == 4

    @pytest.mark.parametrize("speed_id,breath", [("space-man", 4), ("ice-man", 2)])
    def test_full_session(self, speed_id, breath):
        practice = PracticeLoader.create().get_practice("beginner").with_session(cycles=1, speed_id=speed_id)
        exercise = BreathingExercise(practice)
        exercise.start()

        ticks = 0
        while exercise.state.is_running:
            exercise.tick()
            ticks += 1
            assert ticks < 1000

        # Per round: one cycle, exhale hold, transitional inhale 4, inhale hold 15,
        # transitional exhale 4; one pause tick between rounds
        cycle = 2 * breath
        assert ticks == (cycle + 30 + 23) + 1 + (cycle + 60 + 23) + 1 + (cycle + 90 + 23)
