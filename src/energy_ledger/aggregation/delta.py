"""Net change of cumulative meters over a period.

Each meter is measured against the latest state known at the period start
(the anchor), so meters read only occasionally still attribute their
consumption to the right period.  Results are signed: a counter that went
backwards yields a negative contribution and callers decide whether to clamp.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from energy_ledger.aggregation.series import group_by
from energy_ledger.models import MeterReading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodTotal:
    total: float = 0.0
    reading_count: int = 0


def total_for_period(
    readings: Sequence[MeterReading],
    start: datetime,
    end: datetime,
    meter_types: Iterable[str],
) -> PeriodTotal:
    """Sum the per-meter deltas of all meters of *meter_types* in ``[start, end]``.

    A meter contributes ``last in-period value - anchor value`` where the
    anchor is its latest reading before *start*; without one, the first
    in-period reading is the base.  Meters without in-period readings are
    skipped.
    """
    wanted = set(meter_types)
    meter_ids = {r.meter_id for r in readings if r.type in wanted}
    if not meter_ids:
        return PeriodTotal()

    # Full history per meter, including readings of other types on the same id
    series_by_meter = group_by(readings, lambda r: r.meter_id if r.meter_id in meter_ids else None)

    total = 0.0
    reading_count = 0
    for meter_id, series in series_by_meter.items():
        in_period = series.in_period(start, end)
        if not in_period:
            continue
        reading_count += len(in_period)
        base = series.anchor(start) or in_period[0]
        delta = in_period[-1].value - base.value
        if delta < 0:
            logger.debug("Negative delta %.3f for meter %s between %s and %s", delta, meter_id, start, end)
        total += delta

    return PeriodTotal(total=total, reading_count=reading_count)
