"""Configuration management for Energy Ledger."""

from energy_ledger.config.schema import AppConfig
from energy_ledger.config.manager import ConfigManager

__all__ = ["AppConfig", "ConfigManager"]
