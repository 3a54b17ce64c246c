"""Per-period consumption and cost breakdown."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Sequence

from energy_ledger.accounting.autarky import autarky_and_savings
from energy_ledger.aggregation.delta import total_for_period
from energy_ledger.config.schema import PricingConfig
from energy_ledger.formatting import format_currency
from energy_ledger.models import (
    CONSUMPTION_TYPES,
    FEED_IN_TYPES,
    Device,
    EnergyProvider,
    EnergyType,
    MeterReading,
    find_provider,
)
from energy_ledger.periods import Period, resolve_period

logger = logging.getLogger(__name__)


@dataclass
class CostBreakdown:
    electricity: float = 0.0
    gas: float = 0.0
    water: float = 0.0
    total: float = 0.0


@dataclass
class ConsumptionBreakdown:
    electricity: float = 0.0
    gas: float = 0.0
    water: float = 0.0


@dataclass
class DetailedCosts:
    """Everything a cost/overview screen shows for one period."""

    costs: CostBreakdown = field(default_factory=CostBreakdown)
    real_consumption: ConsumptionBreakdown = field(default_factory=ConsumptionBreakdown)
    production: float = 0.0
    consumption: float = 0.0
    autarky: float = 0.0
    self_consumption: float = 0.0
    savings: float = 0.0
    co2_saved: float = 0.0
    grid_feed_in: float = 0.0
    period_start: datetime | None = None
    period_end: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("period_start", "period_end"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    def display(self, currency: str = "€") -> dict[str, str]:
        """Costs and savings rendered for display in *currency*."""
        shown = {name: format_currency(value, currency) for name, value in asdict(self.costs).items()}
        shown["savings"] = format_currency(self.savings, currency)
        return shown


def detailed_costs(
    readings: Sequence[MeterReading],
    providers: Sequence[EnergyProvider],
    period: Period | str,
    devices: Sequence[Device] | None = None,
    reference: datetime | None = None,
    *,
    pricing: PricingConfig | None = None,
) -> DetailedCosts:
    """Compute consumption, costs and self-sufficiency for *period*.

    Cost per type is ``consumption * price_per_unit + basic_fee`` when a
    provider for that type exists and 0 otherwise; consumption is reported
    either way.  *devices* is not consulted: production comes from ``solar``
    readings through the delta aggregator.
    """
    pricing = pricing or PricingConfig()
    window = resolve_period(period, reference)

    real = ConsumptionBreakdown(
        **{
            energy_type: total_for_period(readings, window.start, window.end, [energy_type]).total
            for energy_type in CONSUMPTION_TYPES
        }
    )
    production = total_for_period(readings, window.start, window.end, [EnergyType.SOLAR]).total
    grid_feed_in = total_for_period(readings, window.start, window.end, FEED_IN_TYPES).total

    costs = CostBreakdown()
    for energy_type in CONSUMPTION_TYPES:
        provider = find_provider(providers, energy_type)
        if provider is None:
            continue
        type_cost = getattr(real, energy_type) * provider.price_per_unit + provider.basic_fee
        setattr(costs, energy_type, type_cost)
        costs.total += type_cost

    summary = autarky_and_savings(
        real.electricity,
        production,
        grid_feed_in,
        find_provider(providers, EnergyType.ELECTRICITY),
        default_price=pricing.default_price_per_unit,
        co2_factor=pricing.co2_factor_kg_per_kwh,
    )
    logger.debug("Detailed costs for %s: total %.2f", Period(period).value, costs.total)

    return DetailedCosts(
        costs=costs,
        real_consumption=real,
        production=production,
        consumption=real.electricity + real.gas + real.water,
        autarky=summary.autarky,
        self_consumption=summary.self_consumption,
        savings=summary.savings,
        co2_saved=summary.co2_saved,
        grid_feed_in=grid_feed_in,
        period_start=window.start,
        period_end=window.end,
    )
