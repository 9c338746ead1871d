"""Practice catalog loader with per-call overrides."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from ..data.models import PracticeConfig
from ..data.parsers import parse_practice_config
from ..errors import MalformedPracticeError, UnknownPracticeError

logger = structlog.get_logger(__name__)

CATALOG_FILENAME = "practices.yaml"


@dataclass(frozen=True)
class PracticeLoader:
    """Loads practices from a YAML catalog."""

    config_dir: Path

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "PracticeLoader":
        """Create a PracticeLoader instance (defaults to the bundled catalog)."""
        if config_dir is None:
            config_dir = Path(__file__).parent

        return cls(config_dir=Path(config_dir))

    @property
    def catalog_file(self) -> Path:
        return self.config_dir / CATALOG_FILENAME

    def load_catalog(self) -> dict[str, Any]:
        """Load the raw practice mappings keyed by practice id."""
        if not self.catalog_file.exists():
            return {}

        with open(self.catalog_file) as f:
            catalog = yaml.safe_load(f) or {}

        practices = catalog.get("practices", {})
        if not isinstance(practices, dict):
            raise MalformedPracticeError(
                f"'practices' in {self.catalog_file} must be a mapping",
                field="practices",
                raw_value=practices
            )
        return practices

    def list_practices(self) -> list[str]:
        """Ids of all practices in the catalog."""
        return sorted(self.load_catalog().keys())

    def load_raw_practice(self, practice_id: str) -> dict[str, Any]:
        """Raw mapping of one practice."""
        catalog = self.load_catalog()
        if practice_id not in catalog:
            raise UnknownPracticeError(
                f"Unknown practice: {practice_id}",
                practice_id=practice_id,
                available=sorted(catalog.keys())
            )
        return catalog[practice_id]

    def get_practice(self, practice_id: str) -> PracticeConfig:
        """Load and parse one practice by id."""
        practice = parse_practice_config(self.load_raw_practice(practice_id), practice_id=practice_id)

        logger.info(
            "Loaded practice",
            practice_id=practice_id,
            catalog=str(self.catalog_file),
            rounds=practice.total_rounds
        )

        return practice

    def load_practice_overrides(
        self,
        practice_id: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> PracticeConfig:
        """
        Load a practice with overrides applied.

        Priority order:
        1. Per-call overrides (highest priority)
        2. Catalog entry

        Lists (rounds, speeds) in the overrides replace the catalog's lists.
        """
        config = self.load_raw_practice(practice_id)

        if overrides:
            config = self._deep_merge(config, overrides)
            logger.debug(
                "Applied practice overrides",
                practice_id=practice_id,
                override_keys=sorted(overrides.keys())
            )

        return parse_practice_config(config, practice_id=practice_id)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
