"""Reading store service: validated writes and explicit recomputation.

Writes go through the validator; derived figures are never cached.  After a
mutation the caller asks for a fresh :class:`LedgerReport` via
:meth:`EnergyLedger.recompute`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from energy_ledger.accounting.costs import DetailedCosts, detailed_costs
from energy_ledger.aggregation.production import production_for_period
from energy_ledger.aggregation.stats import (
    CurrentEnergyData,
    EnergyStats,
    current_energy_data,
    energy_stats,
    total_production,
)
from energy_ledger.config.schema import AppConfig
from energy_ledger.db.repository import Repository
from energy_ledger.formatting import parse_german_number
from energy_ledger.logging.context import log_context
from energy_ledger.models import MeterReading, ReadingDraft, coerce_datetime, coerce_value
from energy_ledger.periods import Period, resolve_period
from energy_ledger.readings.differences import (
    AnnotatedReading,
    DailyCostReport,
    daily_cost_table,
    filter_readings,
    with_differences,
)
from energy_ledger.readings.validator import ValidationResult, validate_reading
from energy_ledger.timezone_utils import localize, resolve_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteOutcome:
    """Result of a create/update attempt."""

    validation: ValidationResult
    reading: MeterReading | None = None
    saved: bool = False

    @property
    def requires_confirmation(self) -> bool:
        return not self.saved and self.validation.needs_confirmation


@dataclass
class LedgerReport:
    """All derived figures for one snapshot of the store."""

    generated_at: datetime
    costs: dict[Period, DetailedCosts] = field(default_factory=dict)
    stats: dict[Period, EnergyStats] = field(default_factory=dict)
    device_production: dict[Period, float] = field(default_factory=dict)
    current: CurrentEnergyData | None = None
    total_production: float = 0.0
    currency: str = "€"

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "costs": {p.value: c.to_dict() for p, c in self.costs.items()},
            "stats": {p.value: vars(s) for p, s in self.stats.items()},
            "display": {p.value: c.display(self.currency) for p, c in self.costs.items()},
            "device_production": {p.value: v for p, v in self.device_production.items()},
            "current": None if self.current is None else {
                **vars(self.current), "timestamp": self.current.timestamp.isoformat(),
            },
            "total_production": self.total_production,
        }


def _parse_value(raw: float | str) -> float:
    if isinstance(raw, str):
        return parse_german_number(raw)
    return coerce_value(raw)


class EnergyLedger:
    """Validated CRUD over meter readings plus on-demand aggregation."""

    def __init__(self, repo: Repository, config: AppConfig) -> None:
        self._repo = repo
        self._config = config
        self._tz = resolve_timezone(config.timezone)

    @property
    def repo(self) -> Repository:
        return self._repo

    def now(self) -> datetime:
        return datetime.now(self._tz)

    async def add_reading(self, draft: ReadingDraft, confirm: bool = False) -> WriteOutcome:
        """Validate and store a new reading.

        A warning (implausibly high consumption) blocks the write unless
        *confirm* is set; errors always block.
        """
        timestamp = localize(draft.timestamp, self._tz) if draft.timestamp else self.now()
        candidate = MeterReading(
            id=uuid.uuid4().hex,
            meter_id=draft.meter_id,
            meter_name=draft.meter_name,
            type=draft.type,
            value=_parse_value(draft.value),
            timestamp=timestamp,
            unit=draft.unit,
            notes=draft.notes,
            device_id=draft.device_id,
        )
        existing = await self._repo.get_readings(meter_id=candidate.meter_id)
        return await self._write(candidate, existing, confirm, action="add")

    async def update_reading(
        self, reading_id: str, changes: dict[str, Any], confirm: bool = False,
    ) -> WriteOutcome:
        """Validate and apply *changes* to an existing reading."""
        current = await self._repo.get_reading(reading_id)
        if current is None:
            raise LookupError(f"Unknown reading id: {reading_id}")

        candidate = current
        if "value" in changes or "reading" in changes:
            raw = changes.get("reading", changes.get("value"))
            candidate = replace(candidate, value=_parse_value(raw))
        if changes.get("timestamp") is not None:
            ts = changes["timestamp"]
            candidate = replace(candidate, timestamp=localize(coerce_datetime(ts), self._tz))
        for key in ("meter_id", "meter_name", "type", "unit", "notes", "device_id"):
            if key in changes:
                candidate = replace(candidate, **{key: changes[key]})

        # The record being edited is not its own neighbour
        existing = [
            r for r in await self._repo.get_readings(meter_id=candidate.meter_id)
            if r.id != reading_id
        ]
        return await self._write(candidate, existing, confirm, action="update")

    async def _write(
        self,
        candidate: MeterReading,
        existing: list[MeterReading],
        confirm: bool,
        action: str,
    ) -> WriteOutcome:
        with log_context(meter_id=candidate.meter_id, reading_id=candidate.id):
            result = validate_reading(candidate, existing, self._config.validation)
            if not result.valid:
                logger.info("Rejected %s of reading: %s", action, result.error)
                return WriteOutcome(validation=result, reading=candidate)
            if result.warning and not confirm:
                logger.info("Reading %s awaits confirmation: %s", action, result.warning)
                return WriteOutcome(validation=result, reading=candidate)

            await self._repo.add_reading(candidate)
            logger.info("Reading %s stored (%s %.3f %s)", action, candidate.type, candidate.value, candidate.unit)
            return WriteOutcome(validation=result, reading=candidate, saved=True)

    async def remove_reading(self, reading_id: str) -> bool:
        removed = await self._repo.remove_reading(reading_id)
        if removed:
            logger.info("Reading %s removed", reading_id)
        else:
            logger.warning("Reading %s not found for removal", reading_id)
        return removed

    async def recompute(self, reference: datetime | None = None) -> LedgerReport:
        """Derive every period's figures from a fresh snapshot of the store."""
        reference = localize(reference, self._tz) if reference else self.now()
        readings = await self._repo.get_readings()
        devices = await self._repo.get_devices()
        providers = await self._repo.get_providers()

        report = LedgerReport(generated_at=reference, currency=self._config.pricing.currency_symbol)
        for period in Period:
            report.costs[period] = detailed_costs(
                readings, providers, period, devices, reference, pricing=self._config.pricing,
            )
            report.stats[period] = energy_stats(
                readings, period, providers, self._config.goals, reference,
                pricing=self._config.pricing,
            )
            window = resolve_period(period, reference)
            report.device_production[period] = production_for_period(
                readings, devices, window.start, window.end,
            )
        report.current = current_energy_data(readings, reference)
        report.total_production = total_production(readings)
        logger.debug("Recomputed aggregates over %d readings", len(readings))
        return report

    async def history(self) -> list[AnnotatedReading]:
        readings = await self._repo.get_readings()
        devices = await self._repo.get_devices()
        return with_differences(readings, devices)

    async def daily_costs(
        self,
        since: datetime | None = None,
        energy_type: str | None = None,
        search: str | None = None,
    ) -> DailyCostReport:
        since = localize(since, self._tz) if since else None
        readings = filter_readings(await self._repo.get_readings(), since, energy_type, search)
        providers = await self._repo.get_providers()
        return daily_cost_table(readings, providers)
