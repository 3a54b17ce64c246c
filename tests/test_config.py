"""Tests for configuration loading and persistence."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from energy_ledger.config.manager import ConfigManager
from energy_ledger.config.schema import AppConfig, ValidationConfig
from energy_ledger.settings import (
    ENV_CONFIG_PATH,
    ENV_DEFAULTS_PATH,
    config_paths,
    get_config_manager,
    load_settings,
)


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.timezone == "Europe/Berlin"
        assert config.validation.threshold_for("electricity") == 50.0
        assert config.validation.threshold_for("water") == 1.0
        assert config.validation.threshold_for("heat") == 50.0
        assert config.pricing.default_price_per_unit == 0.30
        assert config.goals.monthly_co2_goal_kg == 150.0

    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValidationError):
            ValidationConfig(min_interval_days=0)


class TestConfigManager:
    def test_shipped_defaults_match_schema(self) -> None:
        defaults = Path(__file__).parent.parent / "config.defaults.yaml"
        mgr = ConfigManager(defaults_path=defaults, user_path=Path("/nonexistent/config.yaml"))
        assert mgr.load() == AppConfig()

    def test_user_overrides_are_deep_merged(self, tmp_path: Path) -> None:
        defaults = tmp_path / "defaults.yaml"
        defaults.write_text("pricing:\n  default_price_per_unit: 0.25\n  co2_factor_kg_per_kwh: 0.5\n")
        user = tmp_path / "config.yaml"
        user.write_text("pricing:\n  default_price_per_unit: 0.40\n")

        config = ConfigManager(defaults, user).load()
        assert config.pricing.default_price_per_unit == 0.40
        assert config.pricing.co2_factor_kg_per_kwh == 0.5

    def test_config_requires_load(self, tmp_path: Path) -> None:
        mgr = ConfigManager(tmp_path / "d.yaml", tmp_path / "u.yaml")
        with pytest.raises(RuntimeError):
            _ = mgr.config

    def test_to_json(self, config_manager: ConfigManager) -> None:
        assert '"timezone": "Europe/Berlin"' in config_manager.to_json()
        assert config_manager.get_raw() == {"db": {"path": ":memory:"}}


class TestDailyThreshold:
    def test_persists_and_reloads(self, config_manager: ConfigManager, tmp_path: Path) -> None:
        config = config_manager.set_daily_threshold("gas", 35)

        assert config.validation.threshold_for("gas") == 35.0
        assert config.validation.threshold_for("electricity") == 50.0
        assert config.validation.threshold_for("water") == 1.0
        saved = yaml.safe_load((tmp_path / "config.yaml").read_text())
        assert saved["validation"]["daily_thresholds"]["gas"] == 35.0

    def test_new_type(self, config_manager: ConfigManager) -> None:
        config = config_manager.set_daily_threshold("heat", 80)
        assert config.validation.threshold_for("heat") == 80.0

    @pytest.mark.parametrize("limit", [0, -1])
    def test_rejects_non_positive(self, config_manager: ConfigManager, limit: float) -> None:
        with pytest.raises(ValueError):
            config_manager.set_daily_threshold("gas", limit)

    def test_invalid_update_leaves_file_untouched(self, config_manager: ConfigManager, tmp_path: Path) -> None:
        config_manager.set_daily_threshold("gas", 30)
        before = (tmp_path / "config.yaml").read_text()

        with pytest.raises(ValidationError):
            config_manager.update_user_config({"validation": {"min_interval_days": -1}})
        assert (tmp_path / "config.yaml").read_text() == before


class TestSettings:
    def test_environment_paths(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_DEFAULTS_PATH, str(tmp_path / "d.yaml"))
        monkeypatch.delenv(ENV_CONFIG_PATH, raising=False)
        defaults, user = config_paths()
        assert defaults == tmp_path / "d.yaml"
        assert user == Path("config.yaml")
        assert config_paths(Path("x.yaml"))[0] == Path("x.yaml")

    def test_load_settings_sets_active_manager(self, tmp_path: Path) -> None:
        (tmp_path / "u.yaml").write_text("timezone: UTC\n")
        config = load_settings(tmp_path / "d.yaml", tmp_path / "u.yaml")
        assert config.timezone == "UTC"
        assert get_config_manager().config is config
