"""Pydantic configuration models for all system settings."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ValidationConfig(BaseModel):
    """Plausibility limits applied when a reading is entered.

    Thresholds are the highest average daily consumption (in the meter's
    unit per day) accepted without asking the user to confirm.
    """

    daily_thresholds: dict[str, float] = Field(
        default_factory=lambda: {"electricity": 50.0, "gas": 20.0, "water": 1.0}
    )
    default_daily_threshold: float = Field(50.0, gt=0.0)
    min_interval_days: float = Field(0.1, gt=0.0)  # 2.4h; shorter gaps skip the rate check

    def threshold_for(self, energy_type: str) -> float:
        return self.daily_thresholds.get(energy_type, self.default_daily_threshold)


class PricingConfig(BaseModel):
    default_price_per_unit: float = Field(0.30, ge=0.0)  # used when no electricity tariff is set
    co2_factor_kg_per_kwh: float = Field(0.4, ge=0.0)
    currency_symbol: str = "€"


class SustainabilityGoalsConfig(BaseModel):
    monthly_co2_goal_kg: float = 150.0
    energy_saver_goal_kg: float = 100.0
    solar_pioneer_goal_kwh: float = 1000.0
    sustainability_champion_goal: float = 1000.0  # currency units saved


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file: str = ""


class DBConfig(BaseModel):
    path: str = "energy_ledger.db"


class AppConfig(BaseModel):
    """Root configuration model containing all system settings."""

    timezone: str = "Europe/Berlin"
    validation: ValidationConfig = ValidationConfig()
    pricing: PricingConfig = PricingConfig()
    goals: SustainabilityGoalsConfig = SustainabilityGoalsConfig()
    logging: LoggingConfig = LoggingConfig()
    db: DBConfig = DBConfig()
