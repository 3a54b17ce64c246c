"""Core data model: meter readings, devices and energy providers.

Records arrive from storage, imports or forms in slightly different shapes
(camelCase keys, the legacy ``value`` alias for ``reading``, ISO strings for
dates).  Each ``from_record`` constructor normalises a record exactly once so
that the aggregation code only ever sees canonical, typed values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Iterable, Mapping


class EnergyType:
    """Well-known reading types. Types are open-ended strings."""

    ELECTRICITY = "electricity"
    GAS = "gas"
    WATER = "water"
    HEAT = "heat"
    SOLAR = "solar"
    SOLAR_PV_FEED_IN = "solar_pv_feed_in"
    PRODUCTION = "production"
    GRID_FEED_IN = "grid_feed_in"
    GRID_CONSUMPTION = "grid_consumption"


CONSUMPTION_TYPES = (EnergyType.ELECTRICITY, EnergyType.GAS, EnergyType.WATER)
PRODUCTION_TYPES = (EnergyType.PRODUCTION, EnergyType.SOLAR, EnergyType.GRID_FEED_IN)
FEED_IN_TYPES = (EnergyType.GRID_FEED_IN, EnergyType.SOLAR_PV_FEED_IN)

PRODUCTION_DEVICE_TYPES = frozenset({"solar-pv", "solar-pv-export"})
PRODUCTION_METER_TYPES = frozenset({"solar-pv", "solar-pv-export", "solar", "production"})


class CalculationPolicy(str, Enum):
    """How successive readings of a meter accumulate."""

    CUMULATIVE = "difference"  # odometer-style counter
    PERIOD_AMOUNT = "sum"  # each reading is that interval's amount

    @classmethod
    def parse(cls, value: Any) -> CalculationPolicy:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.CUMULATIVE


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def coerce_value(raw: Any) -> float:
    """Convert a stored reading value to float; unusable values become NaN."""
    if isinstance(raw, bool) or raw is None:
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return math.nan
    return math.nan


def coerce_datetime(raw: Any, tz: tzinfo | None = None) -> datetime:
    """Parse a stored timestamp.

    Epoch milliseconds are an absolute instant and always come back aware.
    With *tz*, naive values are interpreted in it and aware ones converted
    to it, so every result shares one kind.
    """
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        # Epoch milliseconds, as exported by JavaScript clients
        value = datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
    else:
        raise ValueError(f"Unsupported timestamp: {raw!r}")

    if tz is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _optional_datetime(raw: Any) -> datetime | None:
    return None if raw in (None, "") else coerce_datetime(raw)


@dataclass(frozen=True)
class MeterReading:
    """One manually entered meter observation."""

    id: str
    meter_id: str
    type: str
    value: float
    timestamp: datetime
    meter_name: str = ""
    unit: str = "kWh"
    notes: str | None = None
    device_id: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], tz: tzinfo | None = None) -> MeterReading:
        return cls(
            id=str(_pick(record, "id", default="")),
            meter_id=str(_pick(record, "meter_id", "meterId", default="")),
            meter_name=str(_pick(record, "meter_name", "meterName", default="")),
            type=str(_pick(record, "type", default="")),
            value=coerce_value(_pick(record, "reading", "value")),
            timestamp=coerce_datetime(_pick(record, "timestamp"), tz),
            unit=str(_pick(record, "unit", default="kWh")),
            notes=_pick(record, "notes"),
            device_id=_pick(record, "device_id", "deviceId"),
        )

    @property
    def is_usable(self) -> bool:
        """False for readings whose stored value could not be parsed."""
        return math.isfinite(self.value)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "meter_id": self.meter_id,
            "meter_name": self.meter_name,
            "type": self.type,
            "reading": self.value,
            "timestamp": self.timestamp.isoformat(),
            "unit": self.unit,
            "notes": self.notes,
            "device_id": self.device_id,
        }


@dataclass(frozen=True)
class Device:
    """Registered device or meter and its accumulation policy."""

    id: str
    name: str = ""
    type: str = "meter"
    meter_type: str | None = None
    calculation_type: CalculationPolicy = CalculationPolicy.CUMULATIVE
    unit: str | None = None
    location: str | None = None
    provider_id: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Device:
        data = record.get("data") if isinstance(record.get("data"), Mapping) else {}
        return cls(
            id=str(_pick(record, "id", default="")),
            name=str(_pick(record, "name", default="")),
            type=str(_pick(record, "type", default="meter")),
            meter_type=_pick(record, "meter_type", "meterType", default=_pick(data, "meterType")),
            calculation_type=CalculationPolicy.parse(
                _pick(record, "calculation_type", "calculationType")
            ),
            unit=_pick(record, "unit", default=_pick(data, "unit")),
            location=_pick(record, "location", default=_pick(data, "location")),
            provider_id=_pick(record, "provider_id", "providerId"),
        )

    @property
    def is_production(self) -> bool:
        if self.type in PRODUCTION_DEVICE_TYPES:
            return True
        return self.type == "meter" and self.meter_type in PRODUCTION_METER_TYPES

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "meter_type": self.meter_type,
            "calculation_type": self.calculation_type.value,
            "unit": self.unit,
            "location": self.location,
            "provider_id": self.provider_id,
        }


@dataclass(frozen=True)
class EnergyProvider:
    """Supply contract (tariff) for one energy type."""

    id: str
    type: str
    price_per_unit: float = 0.0
    basic_fee: float = 0.0
    name: str = ""
    feed_in_tariff: float | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    meter_id: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> EnergyProvider:
        feed_in = _pick(record, "feed_in_tariff", "feedInTariff")
        return cls(
            id=str(_pick(record, "id", default="")),
            name=str(_pick(record, "name", default="")),
            type=str(_pick(record, "type", default="")),
            price_per_unit=_finite_or_zero(_pick(record, "price_per_unit", "pricePerUnit")),
            basic_fee=_finite_or_zero(_pick(record, "basic_fee", "basicFee")),
            feed_in_tariff=None if feed_in is None else _finite_or_zero(feed_in),
            valid_from=_optional_datetime(_pick(record, "valid_from", "validFrom")),
            valid_to=_optional_datetime(_pick(record, "valid_to", "validTo")),
            meter_id=_pick(record, "meter_id", "meterId"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "price_per_unit": self.price_per_unit,
            "basic_fee": self.basic_fee,
            "feed_in_tariff": self.feed_in_tariff,
            "valid_from": self.valid_from.isoformat() if self.valid_from else None,
            "valid_to": self.valid_to.isoformat() if self.valid_to else None,
            "meter_id": self.meter_id,
        }


def _finite_or_zero(raw: Any) -> float:
    value = coerce_value(raw)
    return value if math.isfinite(value) else 0.0


def find_provider(providers: Iterable[EnergyProvider] | None, energy_type: str) -> EnergyProvider | None:
    """First provider registered for *energy_type*, if any."""
    for provider in providers or ():
        if provider.type == energy_type:
            return provider
    return None


def find_device(devices: Iterable[Device] | None, device_id: str | None) -> Device | None:
    if device_id is None:
        return None
    for device in devices or ():
        if device.id == device_id:
            return device
    return None


@dataclass
class ReadingDraft:
    """Reading as submitted by a form, before an id is assigned."""

    meter_id: str
    type: str
    value: float | str
    timestamp: datetime | None = None
    meter_name: str = ""
    unit: str = "kWh"
    notes: str | None = None
    device_id: str | None = None
