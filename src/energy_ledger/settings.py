"""Process-wide settings: where config files live and the active manager."""

from __future__ import annotations

import os
from pathlib import Path

from energy_ledger.config.manager import ConfigManager
from energy_ledger.config.schema import AppConfig

ENV_DEFAULTS_PATH = "ENERGY_LEDGER_DEFAULTS"
ENV_CONFIG_PATH = "ENERGY_LEDGER_CONFIG"

_config_manager: ConfigManager | None = None


def config_paths(
    defaults_path: Path | None = None,
    user_path: Path | None = None,
) -> tuple[Path, Path]:
    """Explicit paths win, then environment variables, then the working directory."""
    defaults = defaults_path or Path(os.getenv(ENV_DEFAULTS_PATH) or "config.defaults.yaml")
    user = user_path or Path(os.getenv(ENV_CONFIG_PATH) or "config.yaml")
    return defaults, user


def load_settings(
    defaults_path: Path | None = None,
    user_path: Path | None = None,
) -> AppConfig:
    global _config_manager
    _config_manager = ConfigManager(*config_paths(defaults_path, user_path))
    return _config_manager.load()


def get_config_manager() -> ConfigManager:
    if _config_manager is None:
        raise RuntimeError("Settings not loaded. Call load_settings() first.")
    return _config_manager
