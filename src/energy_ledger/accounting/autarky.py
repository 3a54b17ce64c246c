"""Autarky, self-consumption, savings and avoided CO2."""

from __future__ import annotations

import math
from dataclasses import dataclass

from energy_ledger.models import EnergyProvider

DEFAULT_PRICE_PER_UNIT = 0.30
CO2_KG_PER_KWH = 0.4


@dataclass(frozen=True)
class AutarkySummary:
    autarky: float = 0.0  # % of consumption covered by own production
    self_consumption: float = 0.0  # % of own production used on site
    savings: float = 0.0
    co2_saved: float = 0.0  # kg


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def autarky_and_savings(
    consumption: float,
    production: float,
    grid_feed_in: float,
    electricity_tariff: EnergyProvider | None = None,
    *,
    default_price: float = DEFAULT_PRICE_PER_UNIT,
    co2_factor: float = CO2_KG_PER_KWH,
) -> AutarkySummary:
    """Derive self-sufficiency ratios and savings from period totals.

    Direct consumption is production that was not fed into the grid.  With
    production but no recorded consumption, autarky is reported as 100%.
    """
    direct = max(0.0, production - grid_feed_in)
    price = (electricity_tariff.price_per_unit if electricity_tariff else 0.0) or default_price

    if consumption > 0:
        autarky = direct / consumption * 100
    else:
        autarky = 100.0 if production > 0 else 0.0
    self_consumption = direct / production * 100 if production > 0 else 0.0

    return AutarkySummary(
        autarky=_finite(autarky),
        self_consumption=_finite(self_consumption),
        savings=_finite(direct * price),
        co2_saved=_finite(production * co2_factor),
    )
