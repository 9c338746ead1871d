"""Tests for logging integration in state machine components."""

import io
import json
import pytest
import structlog
from dataclasses import replace
from unittest.mock import Mock, patch

from breath_app.logging import configure_logging, get_logger
from breath_app.logging.config import (
    flatten_transition_context, get_control_logger, get_state_logger, log_state_transition
)
from breath_app.state.machine import eval_exercise_tick, initial_state
from breath_app.state.models import BreathingPhase
from breath_app.state.runtime import BreathingExercise


class TestLoggingIntegration:
    """Test logging of phase transitions and control calls."""

    def setup_method(self):
        """Set up test environment with logging configured."""
        configure_logging(level="DEBUG", format_json=True)

    def test_log_state_transition_binds_fields(self):
        logger = Mock()
        bound = logger.bind.return_value
        bound_with_context = bound.bind.return_value

        log_state_transition(
            logger,
            practice_id="beginner",
            from_phase="exhale",
            to_phase="hold",
            trigger="round_cycles_done",
            context={"round": 1}
        )

        logger.bind.assert_called_once_with(
            practice_id="beginner",
            from_phase="exhale",
            to_phase="hold",
            trigger="round_cycles_done",
            event_type="state_transition"
        )
        bound.bind.assert_called_once_with(context={"round": 1})
        bound_with_context.info.assert_called_once_with("Phase transition")

    def test_log_state_transition_without_context(self):
        logger = Mock()

        log_state_transition(logger, "p", "hold", None, "legacy_complete")

        logger.bind.return_value.info.assert_called_once_with("Phase transition")
        logger.bind.return_value.bind.assert_not_called()

    def test_transition_is_logged(self, single_exhale_round_practice):
        state = replace(initial_state(single_exhale_round_practice), phase_time_remaining=1)

        with patch("breath_app.state.machine.log_state_transition") as mock_log:
            eval_exercise_tick(state, single_exhale_round_practice)

        mock_log.assert_called_once()
        kwargs = mock_log.call_args.kwargs
        assert kwargs["practice_id"] == "test-practice"
        assert kwargs["from_phase"] == "inhale"
        assert kwargs["to_phase"] == "exhale"
        assert kwargs["trigger"] == "next_phase"
        assert kwargs["context"]["phase"] == "exhale"

    def test_completion_logs_no_target_phase(self, legacy_practice):
        state = replace(
            initial_state(legacy_practice),
            current_cycle=2,
            phase_time_remaining=1,
            current_phase=BreathingPhase.HOLD,
            in_final_hold=True,
        )

        with patch("breath_app.state.machine.log_state_transition") as mock_log:
            result = eval_exercise_tick(state, legacy_practice)

        assert result.exercise_completed is True
        assert mock_log.call_args.kwargs["to_phase"] is None

    def test_countdown_is_not_logged(self, legacy_practice):
        with patch("breath_app.state.machine.log_state_transition") as mock_log:
            eval_exercise_tick(initial_state(legacy_practice), legacy_practice)

        mock_log.assert_not_called()

    def test_ignored_control_call_logged_at_debug(self, legacy_practice):
        exercise = BreathingExercise(legacy_practice)
        exercise.logger = Mock()

        exercise.pause()

        exercise.logger.debug.assert_called_once()
        assert exercise.logger.debug.call_args.kwargs["action"] == "pause"
        exercise.logger.info.assert_not_called()

    def test_phase_end_logged_with_description(self, single_exhale_round_practice):
        exercise = BreathingExercise(single_exhale_round_practice)
        exercise.start()
        exercise.logger = Mock()

        exercise.tick()
        exercise.logger.debug.assert_not_called()

        exercise.tick()

        exercise.logger.debug.assert_called_once()
        kwargs = exercise.logger.debug.call_args.kwargs
        assert kwargs["transition"] == "next_phase: -> exhale"
        assert kwargs["elapsed"] == 2

    def test_control_calls_logged_at_info(self, legacy_practice):
        exercise = BreathingExercise(legacy_practice)
        exercise.logger = Mock()

        exercise.start()
        exercise.stop()

        messages = [c.args[0] for c in exercise.logger.info.call_args_list]
        assert messages == ["Exercise started", "Exercise stopped"]

    def test_callback_failure_logged(self, legacy_practice):
        exercise = BreathingExercise(legacy_practice)
        exercise.callbacks = replace(exercise.callbacks, on_start=Mock(side_effect=ValueError("bad")))
        exercise.logger = Mock()

        with pytest.raises(ValueError):
            exercise.start()

        exercise.logger.error.assert_called_once()
        assert exercise.logger.error.call_args.kwargs["callback"] == "on_start"

    def test_logger_factories(self):
        assert get_logger(__name__) is not None
        assert get_state_logger(__name__) is not None
        assert get_control_logger(__name__) is not None


class TestTransitionProcessor:
    """Test the processor chain applied to phase transition records."""

    def test_context_lifted_to_top_level(self):
        event = {
            "event": "Phase transition",
            "event_type": "state_transition",
            "trigger": "next_phase",
            "context": {"phase": "exhale", "round": 1, "trigger": "ignored"},
        }

        result = flatten_transition_context(None, "info", event)

        assert "context" not in result
        assert result["phase"] == "exhale"
        assert result["round"] == 1
        assert result["trigger"] == "next_phase"

    def test_other_records_untouched(self):
        event = {"event": "Exercise started", "context": {"phase": "inhale"}}

        assert flatten_transition_context(None, "info", dict(event)) == event

    def test_json_output_to_stream(self):
        stream = io.StringIO()
        configure_logging(level="INFO", format_json=True, include_timestamp=False, stream=stream)

        logger = structlog.get_logger("breath_app.tests.stream")
        log_state_transition(logger, "beginner", "exhale", "hold", "round_cycles_done", context={"round": 2})

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "Phase transition"
        assert record["practice_id"] == "beginner"
        assert record["round"] == 2
        assert "context" not in record
