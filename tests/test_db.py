"""Tests for the SQLite store and repository."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from energy_ledger.db.engine import close_db, get_db, init_db
from energy_ledger.db.migrations import schema_version
from energy_ledger.db.models import SCHEMA_VERSION
from energy_ledger.db.repository import Repository
from energy_ledger.models import CalculationPolicy, Device, EnergyProvider, MeterReading

CET = timezone(timedelta(hours=1))


def _make_reading(id: str, ts: datetime, value: float, meter_id: str = "M1") -> MeterReading:
    return MeterReading(id=id, meter_id=meter_id, type="electricity", value=value, timestamp=ts, meter_name="Main")


class TestEngine:
    @pytest.mark.asyncio
    async def test_schema_version_recorded(self, db) -> None:
        assert await schema_version(db) == SCHEMA_VERSION

    @pytest.mark.asyncio
    async def test_reopen_keeps_data(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "ledger.db"
        conn = await init_db(path)
        await Repository(conn).add_reading(_make_reading("r1", datetime(2024, 1, 1), 5))
        await close_db()

        conn = await init_db(path)
        try:
            assert await get_db() is conn
            assert len(await Repository(conn).get_readings()) == 1
        finally:
            await close_db()

    @pytest.mark.asyncio
    async def test_newer_schema_is_refused(self, tmp_path: Path) -> None:
        path = tmp_path / "future.db"
        conn = await init_db(path)
        await conn.execute("UPDATE schema_version SET version = ?", (SCHEMA_VERSION + 1,))
        await conn.commit()
        await close_db()

        with pytest.raises(RuntimeError):
            await init_db(path)

    @pytest.mark.asyncio
    async def test_get_db_requires_init(self) -> None:
        await close_db()
        with pytest.raises(RuntimeError):
            await get_db()


class TestReadings:
    @pytest.mark.asyncio
    async def test_add_and_list_sorted(self, repo: Repository) -> None:
        await repo.add_reading(_make_reading("b", datetime(2024, 2, 1, tzinfo=CET), 20))
        await repo.add_reading(_make_reading("a", datetime(2024, 1, 1, tzinfo=CET), 10))
        await repo.add_reading(_make_reading("c", datetime(2024, 3, 1, tzinfo=CET), 1, meter_id="M2"))

        readings = await repo.get_readings()
        assert [r.id for r in readings] == ["a", "b", "c"]
        assert [r.id for r in await repo.get_readings(meter_id="M1")] == ["a", "b"]
        assert readings[0].meter_name == "Main"

    @pytest.mark.asyncio
    async def test_naive_timestamps_get_store_timezone(self, repo: Repository) -> None:
        await repo.add_reading(_make_reading("a", datetime(2024, 1, 1, 12), 10))
        stored = await repo.get_reading("a")
        assert stored.timestamp.tzinfo is not None
        assert stored.timestamp.replace(tzinfo=None) == datetime(2024, 1, 1, 12)

    @pytest.mark.asyncio
    async def test_nan_is_stored_as_null(self, repo: Repository) -> None:
        await repo.add_reading(_make_reading("x", datetime(2024, 1, 1, tzinfo=CET), math.nan))
        async with repo.db.execute("SELECT reading FROM meter_readings WHERE id = 'x'") as cursor:
            row = await cursor.fetchone()
        assert row[0] is None
        assert math.isnan((await repo.get_reading("x")).value)

    @pytest.mark.asyncio
    async def test_update(self, repo: Repository) -> None:
        await repo.add_reading(_make_reading("a", datetime(2024, 1, 1, tzinfo=CET), 10))
        updated = await repo.update_reading("a", {"value": 12.5, "notes": "corrected"})

        assert updated.value == 12.5
        stored = await repo.get_reading("a")
        assert stored.value == 12.5
        assert stored.notes == "corrected"
        assert await repo.update_reading("missing", {"value": 1}) is None

    @pytest.mark.asyncio
    async def test_remove(self, repo: Repository) -> None:
        await repo.add_reading(_make_reading("a", datetime(2024, 1, 1, tzinfo=CET), 10))
        assert await repo.remove_reading("a") is True
        assert await repo.remove_reading("a") is False
        assert await repo.get_reading("a") is None


class TestDevicesAndProviders:
    @pytest.mark.asyncio
    async def test_device_upsert(self, repo: Repository) -> None:
        device = Device(id="pv", name="Roof", type="solar-pv", calculation_type=CalculationPolicy.PERIOD_AMOUNT)
        await repo.upsert_device(device)
        await repo.upsert_device(Device(id="pv", name="Roof south", type="solar-pv"))

        devices = await repo.get_devices()
        assert len(devices) == 1
        assert devices[0].name == "Roof south"
        assert devices[0].calculation_type is CalculationPolicy.CUMULATIVE
        assert await repo.remove_device("pv") is True
        assert await repo.get_devices() == []

    @pytest.mark.asyncio
    async def test_providers_keep_insertion_order(self, repo: Repository) -> None:
        await repo.upsert_provider(EnergyProvider(id="z", type="electricity", price_per_unit=0.3))
        await repo.upsert_provider(
            EnergyProvider(id="a", type="electricity", price_per_unit=0.4, valid_from=datetime(2024, 1, 1)),
        )

        providers = await repo.get_providers()
        assert [p.id for p in providers] == ["z", "a"]
        assert providers[1].valid_from == datetime(2024, 1, 1)
        assert await repo.remove_provider("z") is True
        assert await repo.remove_provider("z") is False
