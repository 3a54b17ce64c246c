"""Data access layer for readings, devices and energy providers."""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any

import aiosqlite

from energy_ledger.models import Device, EnergyProvider, MeterReading

logger = logging.getLogger(__name__)

_READING_COLUMNS = (
    "id", "meter_id", "meter_name", "type", "reading", "timestamp", "unit", "notes", "device_id",
)
_DEVICE_COLUMNS = (
    "id", "name", "type", "meter_type", "calculation_type", "unit", "location", "provider_id",
)
_PROVIDER_COLUMNS = (
    "id", "name", "type", "price_per_unit", "basic_fee", "feed_in_tariff",
    "valid_from", "valid_to", "meter_id",
)


def _upsert_sql(table: str, columns: tuple[str, ...]) -> str:
    assignments = ", ".join(f"{c} = excluded.{c}" for c in columns if c != "id")
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({', '.join('?' * len(columns))}) "
        f"ON CONFLICT(id) DO UPDATE SET {assignments}"
    )


class Repository:
    """Reading, device and tariff stores backed by one SQLite connection.

    Every getter returns a fresh snapshot of domain objects; naive stored
    timestamps are interpreted in *tz* when one is given.
    """

    def __init__(self, db: aiosqlite.Connection, tz: tzinfo | None = None) -> None:
        self.db = db
        self._tz = tz

    # ── Meter readings ──────────────────────────────────────

    def _reading_from_row(self, row: aiosqlite.Row) -> MeterReading:
        return MeterReading.from_record(dict(row), self._tz)

    async def add_reading(self, reading: MeterReading) -> MeterReading:
        record = reading.to_record()
        if not reading.is_usable:
            record["reading"] = None
        await self.db.execute(
            _upsert_sql("meter_readings", _READING_COLUMNS),
            tuple(record[c] for c in _READING_COLUMNS),
        )
        await self.db.commit()
        return reading

    async def update_reading(self, reading_id: str, changes: dict[str, Any]) -> MeterReading | None:
        """Merge *changes* into a stored reading; returns None for unknown ids."""
        current = await self.get_reading(reading_id)
        if current is None:
            return None
        changes = dict(changes)
        if "value" in changes:
            changes["reading"] = changes.pop("value")
        merged = {**current.to_record(), **changes, "id": reading_id}
        updated = MeterReading.from_record(merged, self._tz)
        await self.add_reading(updated)
        return updated

    async def remove_reading(self, reading_id: str) -> bool:
        async with self.db.execute("DELETE FROM meter_readings WHERE id = ?", (reading_id,)) as cursor:
            removed = cursor.rowcount > 0
        await self.db.commit()
        return removed

    async def get_reading(self, reading_id: str) -> MeterReading | None:
        async with self.db.execute(
            "SELECT * FROM meter_readings WHERE id = ?", (reading_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._reading_from_row(row) if row else None

    async def get_readings(self, meter_id: str | None = None) -> list[MeterReading]:
        """Snapshot of all readings (optionally of one meter), oldest first."""
        if meter_id is None:
            query, params = "SELECT * FROM meter_readings", ()
        else:
            query, params = "SELECT * FROM meter_readings WHERE meter_id = ?", (meter_id,)
        async with self.db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
        readings = [self._reading_from_row(r) for r in rows]
        readings.sort(key=lambda r: r.timestamp)
        return readings

    # ── Devices ─────────────────────────────────────────────

    async def upsert_device(self, device: Device) -> Device:
        record = device.to_record()
        await self.db.execute(
            _upsert_sql("devices", _DEVICE_COLUMNS),
            tuple(record[c] for c in _DEVICE_COLUMNS),
        )
        await self.db.commit()
        return device

    async def remove_device(self, device_id: str) -> bool:
        async with self.db.execute("DELETE FROM devices WHERE id = ?", (device_id,)) as cursor:
            removed = cursor.rowcount > 0
        await self.db.commit()
        return removed

    async def get_devices(self) -> list[Device]:
        async with self.db.execute("SELECT * FROM devices ORDER BY name, id") as cursor:
            rows = await cursor.fetchall()
        return [Device.from_record(dict(r)) for r in rows]

    # ── Energy providers ────────────────────────────────────

    async def upsert_provider(self, provider: EnergyProvider) -> EnergyProvider:
        record = provider.to_record()
        await self.db.execute(
            _upsert_sql("energy_providers", _PROVIDER_COLUMNS),
            tuple(record[c] for c in _PROVIDER_COLUMNS),
        )
        await self.db.commit()
        return provider

    async def remove_provider(self, provider_id: str) -> bool:
        async with self.db.execute(
            "DELETE FROM energy_providers WHERE id = ?", (provider_id,)
        ) as cursor:
            removed = cursor.rowcount > 0
        await self.db.commit()
        return removed

    async def get_providers(self) -> list[EnergyProvider]:
        """Providers in insertion order, so the first of a type wins lookups."""
        async with self.db.execute("SELECT * FROM energy_providers ORDER BY rowid") as cursor:
            rows = await cursor.fetchall()
        return [EnergyProvider.from_record(dict(r)) for r in rows]
