"""Chronological reading history of a single meter."""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from energy_ledger.models import CalculationPolicy, MeterReading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeterSeries:
    """Readings of one meter sorted by timestamp (stable for equal times)."""

    key: str
    readings: tuple[MeterReading, ...]

    @classmethod
    def build(cls, key: str, readings: Iterable[MeterReading]) -> MeterSeries:
        return cls(key=key, readings=tuple(sorted(readings, key=lambda r: r.timestamp)))

    def __len__(self) -> int:
        return len(self.readings)

    def _times(self) -> list[datetime]:
        return [r.timestamp for r in self.readings]

    def in_period(self, start: datetime, end: datetime) -> tuple[MeterReading, ...]:
        times = self._times()
        return self.readings[bisect_left(times, start):bisect_right(times, end)]

    def anchor(self, start: datetime) -> MeterReading | None:
        """Latest reading strictly before *start*."""
        idx = bisect_left(self._times(), start)
        return self.readings[idx - 1] if idx > 0 else None

    def last_until(self, end: datetime) -> MeterReading | None:
        """Latest reading at or before *end*."""
        idx = bisect_right(self._times(), end)
        return self.readings[idx - 1] if idx > 0 else None

    def first_from(self, start: datetime) -> MeterReading | None:
        """Earliest reading at or after *start*."""
        idx = bisect_left(self._times(), start)
        return self.readings[idx] if idx < len(self.readings) else None

    def contribution(self, policy: CalculationPolicy, start: datetime, end: datetime) -> float:
        """Amount this meter adds to ``[start, end]`` under *policy*."""
        return _CONTRIBUTIONS[policy](self, start, end)


def group_by(readings: Iterable[MeterReading], key: Callable[[MeterReading], str | None]) -> dict[str, MeterSeries]:
    """Split readings into per-key series, preserving first-seen key order.

    Readings without a usable value are left out of every series.
    """
    buckets: dict[str, list[MeterReading]] = {}
    for reading in readings:
        if not reading.is_usable:
            logger.debug("Skipping reading %s with unusable value", reading.id)
            continue
        k = key(reading)
        if k is None:
            continue
        buckets.setdefault(k, []).append(reading)
    return {k: MeterSeries.build(k, items) for k, items in buckets.items()}


def _counter_delta(series: MeterSeries, start: datetime, end: datetime) -> float:
    last = series.last_until(end)
    if last is None:
        return 0.0
    base = series.anchor(start) or series.first_from(start)
    if base is None:
        return 0.0
    return last.value - base.value


def _period_sum(series: MeterSeries, start: datetime, end: datetime) -> float:
    return sum(r.value for r in series.in_period(start, end))


_CONTRIBUTIONS: dict[CalculationPolicy, Callable[[MeterSeries, datetime, datetime], float]] = {
    CalculationPolicy.CUMULATIVE: _counter_delta,
    CalculationPolicy.PERIOD_AMOUNT: _period_sum,
}
