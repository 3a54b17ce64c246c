"""Reading history views: per-reading differences and daily cost tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Sequence

from energy_ledger.aggregation.series import group_by
from energy_ledger.models import (
    CONSUMPTION_TYPES,
    CalculationPolicy,
    Device,
    EnergyProvider,
    MeterReading,
    find_device,
    find_provider,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotatedReading:
    reading: MeterReading
    difference: float  # change since the meter's previous reading
    total_consumption: float  # change since the meter's first reading


def with_differences(
    readings: Sequence[MeterReading],
    devices: Sequence[Device] | None = None,
) -> list[AnnotatedReading]:
    """Annotate every reading with its difference and running total.

    The policy of a meter comes from the device owning its earliest reading.
    Period-amount meters report each reading's own value as its difference.
    Readings without a usable value are not annotated.  The result is
    ordered most recent first.
    """
    annotated: list[AnnotatedReading] = []
    for series in group_by(readings, lambda r: r.meter_id).values():
        history = series.readings
        device = find_device(devices, history[0].device_id)
        policy = device.calculation_type if device else CalculationPolicy.CUMULATIVE
        first_value = history[0].value

        for idx, current in enumerate(history):
            if policy is CalculationPolicy.PERIOD_AMOUNT:
                difference = current.value
            elif idx > 0:
                difference = current.value - history[idx - 1].value
            else:
                difference = 0.0
            annotated.append(
                AnnotatedReading(
                    reading=current,
                    difference=difference,
                    total_consumption=current.value - first_value,
                )
            )

    annotated.sort(key=lambda a: a.reading.timestamp, reverse=True)
    return annotated


def filter_readings(
    readings: Iterable[MeterReading],
    since: datetime | None = None,
    energy_type: str | None = None,
    search: str | None = None,
) -> list[MeterReading]:
    """List-view filter: minimum timestamp, type and meter-name search."""
    needle = search.lower() if search else None
    selected = [
        r for r in readings
        if (since is None or r.timestamp >= since)
        and (energy_type is None or r.type == energy_type)
        and (needle is None or needle in r.meter_name.lower())
    ]
    selected.sort(key=lambda r: r.timestamp, reverse=True)
    return selected


@dataclass
class DailyCostRow:
    day: date
    consumption: dict[str, float]
    costs: dict[str, float]
    total_cost: float


@dataclass
class DailyCostReport:
    rows: list[DailyCostRow] = field(default_factory=list)  # most recent first
    total_consumption: dict[str, float] = field(default_factory=dict)
    total_costs: dict[str, float] = field(default_factory=dict)
    total_cost: float = 0.0


def daily_cost_table(
    readings: Iterable[MeterReading],
    providers: Sequence[EnergyProvider],
    energy_types: Sequence[str] = CONSUMPTION_TYPES,
) -> DailyCostReport:
    """Day-by-day consumption and variable cost per energy type.

    Readings are bucketed by calendar date, keeping each meter's highest
    value per day (meters are keyed by type and name).  A meter's first
    observed day sets its baseline; later days contribute the increase over
    the previous observed maximum, never less than zero.  Basic fees are not
    included and days without any consumption are left out.
    """
    types = tuple(energy_types)
    daily_max: dict[date, dict[tuple[str, str], float]] = {}
    for reading in readings:
        if reading.type not in types or not reading.is_usable:
            continue
        day_map = daily_max.setdefault(reading.timestamp.date(), {})
        key = (reading.type, reading.meter_name)
        day_map[key] = max(day_map.get(key, reading.value), reading.value)

    prices: dict[str, float] = {}
    for t in types:
        provider = find_provider(providers, t)
        prices[t] = provider.price_per_unit if provider else 0.0

    report = DailyCostReport(
        total_consumption={t: 0.0 for t in types},
        total_costs={t: 0.0 for t in types},
    )
    previous: dict[tuple[str, str], float] = {}

    for day in sorted(daily_max):
        consumption = {t: 0.0 for t in types}
        for key, value in daily_max[day].items():
            if key in previous:
                consumption[key[0]] += max(0.0, value - previous[key])
            previous[key] = value

        if not any(amount > 0 for amount in consumption.values()):
            continue

        costs = {t: consumption[t] * prices[t] for t in types}
        row = DailyCostRow(day=day, consumption=consumption, costs=costs, total_cost=sum(costs.values()))
        report.rows.append(row)
        for t in types:
            report.total_consumption[t] += consumption[t]
            report.total_costs[t] += costs[t]
        report.total_cost += row.total_cost

    report.rows.reverse()
    logger.debug("Daily cost table: %d rows over %d days", len(report.rows), len(daily_max))
    return report
