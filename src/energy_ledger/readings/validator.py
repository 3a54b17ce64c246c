"""Plausibility checks for a reading before it is stored.

Cumulative meters never run backwards, so a new or edited reading must lie
between its chronological neighbours on the same meter.  An implausibly high
average daily consumption since the previous reading is reported as a
warning the user has to confirm, not as an error.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from energy_ledger.config.schema import ValidationConfig
from energy_ledger.formatting import format_number
from energy_ledger.models import MeterReading

logger = logging.getLogger(__name__)

ERROR_INVALID_VALUE = "Invalid value: the reading must be a number."
ERROR_BELOW_PREVIOUS = "The reading must not be lower than the previous reading."
ERROR_ABOVE_NEXT = "The reading must not be higher than the next recorded reading."


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None
    warning: str | None = None

    @property
    def needs_confirmation(self) -> bool:
        return self.valid and self.warning is not None


def _neighbours(
    candidate: MeterReading, existing: Iterable[MeterReading],
) -> tuple[MeterReading | None, MeterReading | None]:
    previous: MeterReading | None = None
    following: MeterReading | None = None
    for reading in existing:
        if reading.meter_id != candidate.meter_id:
            continue
        if reading.timestamp < candidate.timestamp:
            if previous is None or reading.timestamp > previous.timestamp:
                previous = reading
        elif reading.timestamp > candidate.timestamp:
            if following is None or reading.timestamp < following.timestamp:
                following = reading
    return previous, following


def validate_reading(
    candidate: MeterReading,
    existing: Iterable[MeterReading],
    thresholds: ValidationConfig | None = None,
) -> ValidationResult:
    """Check *candidate* against the other readings of its meter.

    When editing, the caller must leave the record being edited out of
    *existing*.  Readings with the same timestamp as the candidate are not
    neighbours.
    """
    thresholds = thresholds or ValidationConfig()
    value = candidate.value
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return ValidationResult(valid=False, error=ERROR_INVALID_VALUE)

    previous, following = _neighbours(candidate, existing)

    if previous is not None and value < previous.value:
        logger.debug("Reading %.3f below previous %.3f on %s", value, previous.value, candidate.meter_id)
        return ValidationResult(valid=False, error=ERROR_BELOW_PREVIOUS)

    if following is not None and value > following.value:
        logger.debug("Reading %.3f above next %.3f on %s", value, following.value, candidate.meter_id)
        return ValidationResult(valid=False, error=ERROR_ABOVE_NEXT)

    if previous is not None:
        days = (candidate.timestamp - previous.timestamp).total_seconds() / 86400
        if days > thresholds.min_interval_days:
            per_day = (value - previous.value) / days
            if per_day > thresholds.threshold_for(candidate.type):
                unit = candidate.unit or "kWh"
                return ValidationResult(
                    valid=True,
                    warning=(
                        f"A consumption of {format_number(per_day, 1)} {unit}/day is very high. "
                        "Are you sure?"
                    ),
                )

    return ValidationResult(valid=True)
