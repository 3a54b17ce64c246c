"""Self-produced energy per period, honouring each device's accumulation policy."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from energy_ledger.aggregation.series import group_by
from energy_ledger.models import Device, MeterReading

logger = logging.getLogger(__name__)


def production_for_period(
    readings: Sequence[MeterReading],
    devices: Sequence[Device],
    start: datetime,
    end: datetime,
) -> float:
    """Total production of all solar/production devices in ``[start, end]``.

    Readings are linked to devices by ``device_id``.  Period-amount devices sum
    their in-period readings; cumulative devices take the counter delta from
    the anchor (or the first reading at or after *start*) to the last reading
    at or before *end*.
    """
    producers = [d for d in devices or () if d.is_production]
    if not producers or not readings:
        return 0.0

    series_by_device = group_by(readings, lambda r: r.device_id)
    total = 0.0
    for device in producers:
        series = series_by_device.get(device.id)
        if series is None:
            continue
        amount = series.contribution(device.calculation_type, start, end)
        logger.debug(
            "Device %s (%s) produced %.3f", device.id, device.calculation_type.value, amount,
        )
        total += amount
    return total
