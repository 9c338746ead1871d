"""Configuration validation utilities."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from ..data.models import HoldPhase, PracticeConfig
from ..data.parsers import normalize_keys
from ..errors import InvalidRoundError

logger = structlog.get_logger(__name__)

_HOLD_PHASES = {phase.value for phase in HoldPhase}


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class ConfigValidator:
    """Validates raw practice configuration."""

    @staticmethod
    def validate_speed(raw: Mapping[str, Any], position: int) -> list[ValidationError]:
        """Validate one speed definition."""
        errors = []
        data = normalize_keys(raw)
        prefix = f"available_speeds[{position}]"

        if not data.get("id"):
            errors.append(ValidationError(
                field=f"{prefix}.id",
                message="Must be a non-empty string",
                value=data.get("id")
            ))

        for field in ("inhale_duration", "exhale_duration"):
            value = data.get(field)
            if not _is_positive_int(value):
                errors.append(ValidationError(
                    field=f"{prefix}.{field}",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_round(raw: Mapping[str, Any], position: int) -> list[ValidationError]:
        """Validate one round definition at its 1-based position."""
        errors = []
        data = normalize_keys(raw)
        prefix = f"rounds[{position}]"

        # Validate index
        if "index" in data and data["index"] != position:
            errors.append(ValidationError(
                field=f"{prefix}.index",
                message=f"Must equal the round's position ({position})",
                value=data["index"]
            ))

        # Validate cycles
        value = data.get("cycles")
        if not _is_positive_int(value):
            errors.append(ValidationError(
                field=f"{prefix}.cycles",
                message="Must be a positive integer",
                value=value
            ))

        # Validate final_hold_phase
        value = data.get("final_hold_phase")
        if not isinstance(value, str) or value.lower() not in _HOLD_PHASES:
            errors.append(ValidationError(
                field=f"{prefix}.final_hold_phase",
                message="Must be 'inhale' or 'exhale'",
                value=value
            ))

        # Validate final_hold_duration
        value = data.get("final_hold_duration")
        if not _is_positive_int(value):
            errors.append(ValidationError(
                field=f"{prefix}.final_hold_duration",
                message="Must be a positive integer",
                value=value
            ))

        return errors

    @staticmethod
    def validate_practice(raw: Mapping[str, Any]) -> list[ValidationError]:
        """Validate a raw practice mapping (camelCase or snake_case keys)."""
        if not isinstance(raw, Mapping):
            return [ValidationError(field="practice", message="Must be a mapping", value=raw)]

        errors = []
        data = normalize_keys(raw)

        # Validate flat-cycle timings
        for field in ("cycles", "inhale_duration", "exhale_duration"):
            value = data.get(field)
            if not _is_positive_int(value):
                errors.append(ValidationError(field=field, message="Must be a positive integer", value=value))

        value = data.get("hold_duration")
        if not _is_non_negative_int(value):
            errors.append(ValidationError(
                field="hold_duration",
                message="Must be a non-negative integer",
                value=value
            ))

        for field in ("pause_duration", "final_hold_duration", "global_inhale_hold_duration"):
            if data.get(field) is not None and not _is_positive_int(data[field]):
                errors.append(ValidationError(
                    field=field,
                    message="Must be a positive integer when set",
                    value=data[field]
                ))

        # Validate speeds
        speeds = data.get("available_speeds") or []
        speed_ids = []
        if not isinstance(speeds, (list, tuple)):
            errors.append(ValidationError(field="available_speeds", message="Must be a list", value=speeds))
            speeds = []
        for position, speed in enumerate(speeds, start=1):
            if not isinstance(speed, Mapping):
                errors.append(ValidationError(
                    field=f"available_speeds[{position}]",
                    message="Must be a mapping",
                    value=speed
                ))
                continue
            errors.extend(ConfigValidator.validate_speed(speed, position))
            speed_ids.append(normalize_keys(speed).get("id"))

        if len(set(speed_ids)) != len(speed_ids):
            errors.append(ValidationError(
                field="available_speeds",
                message="Speed ids must be unique",
                value=speed_ids
            ))

        default_speed = data.get("default_speed_id")
        if default_speed is not None and default_speed not in speed_ids:
            errors.append(ValidationError(
                field="default_speed_id",
                message="Must name one of the available speeds",
                value=default_speed
            ))

        # Validate rounds
        rounds = data.get("rounds") or []
        if not isinstance(rounds, (list, tuple)):
            errors.append(ValidationError(field="rounds", message="Must be a list", value=rounds))
            rounds = []
        for position, round_raw in enumerate(rounds, start=1):
            if not isinstance(round_raw, Mapping):
                errors.append(ValidationError(
                    field=f"rounds[{position}]",
                    message="Must be a mapping",
                    value=round_raw
                ))
                continue
            errors.extend(ConfigValidator.validate_round(round_raw, position))

            speed_id = normalize_keys(round_raw).get("breath_speed_id")
            if speed_id is not None and speed_ids and speed_id not in speed_ids:
                errors.append(ValidationError(
                    field=f"rounds[{position}].breath_speed_id",
                    message="Unknown speed id (practice durations will be used)",
                    value=speed_id
                ))

        return errors


def ensure_runnable(practice: PracticeConfig) -> None:
    """
    Reject practices the transition engine cannot run.

    Raises:
        InvalidRoundError: A round has no cycles, no final hold, or an index
            that does not match its position
    """
    for position, round_cfg in enumerate(practice.rounds, start=1):
        if round_cfg.index != position:
            raise InvalidRoundError(
                f"Round at position {position} has index {round_cfg.index}",
                round_index=round_cfg.index,
                field="index",
                value=round_cfg.index,
                context={"practice_id": practice.id}
            )
        if round_cfg.cycles <= 0:
            raise InvalidRoundError(
                f"Round {round_cfg.index} must have at least one cycle",
                round_index=round_cfg.index,
                field="cycles",
                value=round_cfg.cycles,
                context={"practice_id": practice.id}
            )
        if round_cfg.final_hold_duration <= 0:
            raise InvalidRoundError(
                f"Round {round_cfg.index} must have a positive final hold duration",
                round_index=round_cfg.index,
                field="final_hold_duration",
                value=round_cfg.final_hold_duration,
                context={"practice_id": practice.id}
            )

    logger.debug("Practice is runnable", practice_id=practice.id, rounds=practice.total_rounds)
