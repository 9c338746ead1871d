"""
Practice parsers for converting raw configuration mappings to PracticeConfig.

Raw practices come from YAML catalogs or from a host application (often as
JSON written in camelCase). Keys are accepted in either camelCase or
snake_case; types are checked and converted here so the engine only ever sees
well-typed, frozen configuration.
"""

import re
from collections.abc import Mapping
from typing import Any, Optional

import structlog

from ..config.defaults import DEFAULTS
from ..errors import MalformedPracticeError
from .models import HoldPhase, PracticeConfig, RoundConfig, SpeedConfig

logger = structlog.get_logger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

REQUIRED_PRACTICE_FIELDS = ("cycles", "inhale_duration", "exhale_duration", "hold_duration")
REQUIRED_ROUND_FIELDS = ("cycles", "final_hold_phase", "final_hold_duration")
REQUIRED_SPEED_FIELDS = ("id", "inhale_duration", "exhale_duration")


def to_snake_case(key: str) -> str:
    """Convert camelCase keys (inhaleDuration) to snake_case (inhale_duration)."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def normalize_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return a shallow copy of raw with snake_case keys."""
    return {to_snake_case(str(key)): value for key, value in raw.items()}


def _require(data: dict[str, Any], fields: tuple[str, ...], where: str) -> None:
    for field in fields:
        if field not in data or data[field] is None:
            raise MalformedPracticeError(
                f"{where} missing required field: {field}",
                field=field,
                context={"where": where}
            )


def _as_int(value: Any, field: str, where: str) -> int:
    """Convert value to int; bools and non-integral numbers are rejected."""
    if isinstance(value, bool):
        raise MalformedPracticeError(
            f"{where}.{field} must be an integer, got bool",
            field=field,
            raw_value=value
        )
    if isinstance(value, float) and not value.is_integer():
        raise MalformedPracticeError(
            f"{where}.{field} must be a whole number of time units, got {value}",
            field=field,
            raw_value=value
        )
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedPracticeError(
            f"{where}.{field} must be an integer: {e}",
            field=field,
            raw_value=value
        ) from e


def _as_optional_int(value: Any, field: str, where: str) -> Optional[int]:
    if value is None:
        return None
    return _as_int(value, field, where)


def parse_speed_config(raw: Mapping[str, Any]) -> SpeedConfig:
    """Parse a single speed definition."""
    data = normalize_keys(raw)
    _require(data, REQUIRED_SPEED_FIELDS, "speed")
    where = f"speed[{data['id']}]"

    return SpeedConfig(
        id=str(data["id"]),
        inhale_duration=_as_int(data["inhale_duration"], "inhale_duration", where),
        exhale_duration=_as_int(data["exhale_duration"], "exhale_duration", where),
        name=data.get("name"),
    )


def parse_round_config(raw: Mapping[str, Any], position: int) -> RoundConfig:
    """
    Parse a single round definition.

    Args:
        raw: Raw round mapping
        position: 1-based position of the round in the practice; used as the
            index when the mapping does not carry one

    Returns:
        Parsed RoundConfig
    """
    data = normalize_keys(raw)
    _require(data, REQUIRED_ROUND_FIELDS, f"round[{position}]")
    where = f"round[{position}]"

    try:
        hold_phase = HoldPhase(str(data["final_hold_phase"]).lower())
    except ValueError as e:
        raise MalformedPracticeError(
            f"{where}.final_hold_phase must be 'inhale' or 'exhale', got {data['final_hold_phase']!r}",
            field="final_hold_phase",
            raw_value=data["final_hold_phase"]
        ) from e

    speed_id = data.get("breath_speed_id")

    return RoundConfig(
        index=_as_int(data.get("index", position), "index", where),
        cycles=_as_int(data["cycles"], "cycles", where),
        final_hold_phase=hold_phase,
        final_hold_duration=_as_int(data["final_hold_duration"], "final_hold_duration", where),
        breath_speed_id=str(speed_id) if speed_id is not None else None,
        id=data.get("id"),
        label=data.get("label"),
    )


def parse_practice_config(raw: Mapping[str, Any], practice_id: Optional[str] = None) -> PracticeConfig:
    """
    Parse a raw practice mapping into a PracticeConfig.

    Args:
        raw: Practice mapping (camelCase or snake_case keys)
        practice_id: Catalog key, used when the mapping has no "id"

    Returns:
        Frozen PracticeConfig

    Raises:
        MalformedPracticeError: Required fields missing or wrongly typed
    """
    if not isinstance(raw, Mapping):
        raise MalformedPracticeError(
            f"Practice must be a mapping, got {type(raw).__name__}",
            raw_value=raw
        )

    data = normalize_keys(raw)
    where = str(data.get("id") or practice_id or "practice")
    _require(data, REQUIRED_PRACTICE_FIELDS, where)

    raw_rounds = data.get("rounds") or []
    raw_speeds = data.get("available_speeds") or []
    if not isinstance(raw_rounds, (list, tuple)):
        raise MalformedPracticeError(f"{where}.rounds must be a list", field="rounds", raw_value=raw_rounds)
    if not isinstance(raw_speeds, (list, tuple)):
        raise MalformedPracticeError(
            f"{where}.available_speeds must be a list", field="available_speeds", raw_value=raw_speeds
        )

    rounds = tuple(parse_round_config(r, position) for position, r in enumerate(raw_rounds, start=1))
    speeds = tuple(parse_speed_config(s) for s in raw_speeds)

    pause_duration = _as_optional_int(data.get("pause_duration"), "pause_duration", where)

    practice = PracticeConfig(
        cycles=_as_int(data["cycles"], "cycles", where),
        inhale_duration=_as_int(data["inhale_duration"], "inhale_duration", where),
        exhale_duration=_as_int(data["exhale_duration"], "exhale_duration", where),
        hold_duration=_as_int(data["hold_duration"], "hold_duration", where),
        pause_duration=pause_duration if pause_duration is not None else DEFAULTS.timing.default_pause_duration,
        final_hold_duration=_as_optional_int(data.get("final_hold_duration"), "final_hold_duration", where),
        global_inhale_hold_duration=_as_optional_int(
            data.get("global_inhale_hold_duration"), "global_inhale_hold_duration", where
        ),
        rounds=rounds,
        available_speeds=speeds,
        default_speed_id=data.get("default_speed_id"),
        id=str(data.get("id") or practice_id or "custom"),
        name=str(data.get("name") or ""),
        description=str(data.get("description") or ""),
        benefits=tuple(str(b) for b in data.get("benefits") or ()),
    )

    logger.debug(
        "Parsed practice configuration",
        practice_id=practice.id,
        round_based=practice.is_round_based,
        rounds=practice.total_rounds,
        speeds=[s.id for s in practice.available_speeds]
    )

    return practice
