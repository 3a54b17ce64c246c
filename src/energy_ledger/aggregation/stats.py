"""Overview statistics: period totals, sustainability figures, current rates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from energy_ledger.accounting.autarky import autarky_and_savings
from energy_ledger.aggregation.delta import total_for_period
from energy_ledger.config.schema import PricingConfig, SustainabilityGoalsConfig
from energy_ledger.models import (
    CONSUMPTION_TYPES,
    FEED_IN_TYPES,
    PRODUCTION_TYPES,
    EnergyProvider,
    EnergyType,
    MeterReading,
    find_provider,
)
from energy_ledger.periods import Period, resolve_period

logger = logging.getLogger(__name__)

KM_PER_KG_CO2 = 6.0
TREES_PER_KG_CO2 = 0.05  # one tree absorbs ~20 kg CO2 per year

_RATE_WINDOW = timedelta(hours=24)
_LIFETIME_PRODUCTION_TYPES = frozenset({"solar", "production", "solar-pv"})


@dataclass(frozen=True)
class PeriodStats:
    consumption: float
    production: float
    consumption_readings: int
    production_readings: int
    start: datetime


@dataclass(frozen=True)
class EnergyStats:
    production: float = 0.0
    consumption: float = 0.0
    grid_feed_in: float = 0.0
    savings: float = 0.0
    co2_saved: float = 0.0
    autarky: float = 0.0
    self_consumption: float = 0.0
    km_equivalent: float = 0.0
    trees_equivalent: float = 0.0
    avoided_emissions: float = 0.0
    monthly_progress: float = 0.0
    energy_saver_progress: float = 0.0
    solar_pioneer_progress: float = 0.0
    sustainability_progress: float = 0.0


@dataclass(frozen=True)
class CurrentEnergyData:
    """Average hourly rates over the trailing 24 hours."""

    timestamp: datetime
    solar_production: float = 0.0
    consumption: float = 0.0
    grid_feed_in: float = 0.0
    grid_consumption: float = 0.0


def period_stats(
    readings: Sequence[MeterReading],
    period: Period | str,
    reference: datetime | None = None,
) -> PeriodStats:
    """Consumption (electricity, gas, water) and production totals for a period."""
    window = resolve_period(period, reference)
    consumption = total_for_period(readings, window.start, window.end, CONSUMPTION_TYPES)
    production = total_for_period(readings, window.start, window.end, PRODUCTION_TYPES)
    return PeriodStats(
        consumption=consumption.total,
        production=production.total,
        consumption_readings=consumption.reading_count,
        production_readings=production.reading_count,
        start=window.start,
    )


def _progress(value: float, goal: float, fallback: float) -> float:
    return value / (goal or fallback) * 100


def energy_stats(
    readings: Sequence[MeterReading],
    period: Period | str,
    providers: Sequence[EnergyProvider] = (),
    goals: SustainabilityGoalsConfig | None = None,
    reference: datetime | None = None,
    *,
    pricing: PricingConfig | None = None,
) -> EnergyStats:
    """Electricity self-sufficiency figures and goal progress for a period."""
    pricing = pricing or PricingConfig()
    window = resolve_period(period, reference)

    production = total_for_period(
        readings, window.start, window.end, [EnergyType.PRODUCTION, EnergyType.SOLAR],
    ).total
    consumption = total_for_period(readings, window.start, window.end, [EnergyType.ELECTRICITY]).total
    grid_feed_in = total_for_period(readings, window.start, window.end, FEED_IN_TYPES).total

    summary = autarky_and_savings(
        consumption,
        production,
        grid_feed_in,
        find_provider(providers, EnergyType.ELECTRICITY),
        default_price=pricing.default_price_per_unit,
        co2_factor=pricing.co2_factor_kg_per_kwh,
    )
    co2 = summary.co2_saved

    progress = {}
    if goals is not None:
        progress = {
            "monthly_progress": _progress(co2, goals.monthly_co2_goal_kg, 150.0),
            "energy_saver_progress": _progress(co2, goals.energy_saver_goal_kg, 100.0),
            "solar_pioneer_progress": _progress(production, goals.solar_pioneer_goal_kwh, 1000.0),
            "sustainability_progress": _progress(
                summary.savings, goals.sustainability_champion_goal, 1000.0,
            ),
        }

    return EnergyStats(
        production=production,
        consumption=consumption,
        grid_feed_in=grid_feed_in,
        savings=summary.savings,
        co2_saved=co2,
        autarky=summary.autarky,
        self_consumption=summary.self_consumption,
        km_equivalent=co2 * KM_PER_KG_CO2,
        trees_equivalent=co2 * TREES_PER_KG_CO2,
        avoided_emissions=co2,
        **progress,
    )


def _hourly_rate(readings: Sequence[MeterReading], types: frozenset[str], since: datetime) -> float:
    relevant = sorted(
        (r for r in readings if r.type in types and r.timestamp >= since and r.is_usable),
        key=lambda r: r.timestamp,
    )
    if len(relevant) < 2:
        return 0.0
    first, last = relevant[0], relevant[-1]
    hours = (last.timestamp - first.timestamp).total_seconds() / 3600
    if hours == 0:
        return 0.0
    return (last.value - first.value) / hours


def current_energy_data(readings: Sequence[MeterReading], now: datetime | None = None) -> CurrentEnergyData:
    """Estimate current power-like rates from the last 24 hours of readings.

    Rates mix all meters of a kind, so they are indicative only.
    """
    now = now or datetime.now()
    if not readings:
        return CurrentEnergyData(timestamp=now)

    since = now - _RATE_WINDOW
    return CurrentEnergyData(
        timestamp=max(r.timestamp for r in readings),
        consumption=_hourly_rate(readings, frozenset({EnergyType.ELECTRICITY}), since),
        solar_production=_hourly_rate(readings, frozenset(PRODUCTION_TYPES), since),
        grid_feed_in=_hourly_rate(readings, frozenset({EnergyType.GRID_FEED_IN}), since),
        grid_consumption=_hourly_rate(readings, frozenset({EnergyType.GRID_CONSUMPTION}), since),
    )


def total_production(readings: Sequence[MeterReading]) -> float:
    """Counter value of the most recent production reading (lifetime yield)."""
    latest: MeterReading | None = None
    for reading in readings:
        if reading.type not in _LIFETIME_PRODUCTION_TYPES or not reading.is_usable:
            continue
        if latest is None or reading.timestamp > latest.timestamp:
            latest = reading
    return latest.value if latest is not None else 0.0
