"""YAML configuration: shipped defaults overlaid with the user's own file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from energy_ledger.config.schema import AppConfig

logger = logging.getLogger(__name__)


def read_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in *path*; missing, empty or non-mapping files give ``{}``."""
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        logger.warning("Ignoring %s: top level is %s, not a mapping", path, type(data).__name__)
        return {}
    return data or {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """New dict with *override* merged into *base*; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Loads, validates and updates the ledger configuration.

    The defaults file is never written.  Updates go to the user file and are
    validated against :class:`AppConfig` before anything touches disk.
    """

    def __init__(self, defaults_path: Path, user_path: Path) -> None:
        self.defaults_path = defaults_path
        self.user_path = user_path
        self._config: AppConfig | None = None
        self._raw: dict[str, Any] = {}

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        return self._config

    def load(self) -> AppConfig:
        merged = deep_merge(read_yaml(self.defaults_path), read_yaml(self.user_path))
        try:
            config = AppConfig.model_validate(merged)
        except ValidationError:
            logger.error("Invalid configuration in %s or %s", self.defaults_path, self.user_path)
            raise
        self._raw = merged
        self._config = config
        logger.info("Configuration loaded (timezone %s, store %s)", config.timezone, config.db.path)
        return config

    def get_raw(self) -> dict[str, Any]:
        return dict(self._raw)

    def to_json(self) -> str:
        return self.config.model_dump_json(indent=2)

    def update_user_config(self, changes: dict[str, Any]) -> AppConfig:
        """Merge *changes* into the user file and reload.

        Raises ``pydantic.ValidationError`` and leaves the file untouched when
        the result would not be a valid configuration.
        """
        user = deep_merge(read_yaml(self.user_path), changes)
        AppConfig.model_validate(deep_merge(read_yaml(self.defaults_path), user))

        self.user_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.user_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(user, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        return self.load()

    def set_daily_threshold(self, energy_type: str, limit: float) -> AppConfig:
        """Persist the plausibility threshold (units per day) for one energy type."""
        if limit <= 0:
            raise ValueError(f"Threshold for {energy_type!r} must be positive, got {limit}")
        # A thresholds map in the user file replaces the schema defaults wholesale
        thresholds = {**self.config.validation.daily_thresholds, energy_type: float(limit)}
        config = self.update_user_config({"validation": {"daily_thresholds": thresholds}})
        logger.info("Daily threshold for %s set to %.2f", energy_type, limit)
        return config
