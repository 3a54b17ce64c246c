"""Tests for the delta aggregator and meter series helpers."""

from __future__ import annotations

import math
import random
from datetime import datetime

from energy_ledger.aggregation.delta import PeriodTotal, total_for_period
from energy_ledger.aggregation.series import MeterSeries
from energy_ledger.models import MeterReading


def _make_reading(meter_id: str, ts: datetime, value: float, type: str = "electricity") -> MeterReading:
    return MeterReading(
        id=f"{meter_id}-{ts.isoformat()}",
        meter_id=meter_id,
        type=type,
        value=value,
        timestamp=ts,
    )


FEB_START = datetime(2024, 2, 1)
FEB_END = datetime(2024, 2, 29, 23, 59, 59, 999000)


class TestTotalForPeriod:
    def test_monthly_scenario_uses_anchor(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 3, 1), 1450),
            _make_reading("M1", datetime(2024, 1, 1), 1000),
            _make_reading("M1", datetime(2024, 2, 1), 1200),
        ]
        result = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        assert result == PeriodTotal(total=200, reading_count=1)

    def test_window_after_reading_uses_it_as_anchor(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, 1), 1000),
            _make_reading("M1", datetime(2024, 2, 1), 1200),
            _make_reading("M1", datetime(2024, 3, 1), 1450),
        ]
        result = total_for_period(
            readings, datetime(2024, 2, 2), datetime(2024, 3, 1, 23, 59), ["electricity"],
        )
        assert result == PeriodTotal(total=250, reading_count=1)

    def test_anchor_before_period(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, 20), 100),
            _make_reading("M1", datetime(2024, 2, 10), 150),
            _make_reading("M1", datetime(2024, 2, 20), 170),
        ]
        result = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        assert result.total == 70
        assert result.reading_count == 2

    def test_without_anchor_uses_first_in_period(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 2, 5), 100),
            _make_reading("M1", datetime(2024, 2, 10), 150),
            _make_reading("M1", datetime(2024, 2, 20), 170),
        ]
        result = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        assert result.total == 70

    def test_first_ever_reading_contributes_nothing(self) -> None:
        readings = [_make_reading("M1", datetime(2024, 2, 5), 98765)]
        result = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        assert result == PeriodTotal(total=0, reading_count=1)

    def test_meter_without_in_period_readings_is_skipped(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, 5), 100),
            _make_reading("M1", datetime(2024, 3, 5), 300),
        ]
        assert total_for_period(readings, FEB_START, FEB_END, ["electricity"]) == PeriodTotal()

    def test_multiple_meters_are_summed(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, 31), 100),
            _make_reading("M1", datetime(2024, 2, 15), 130),
            _make_reading("M2", datetime(2024, 1, 31), 5000),
            _make_reading("M2", datetime(2024, 2, 28), 5045),
            _make_reading("G1", datetime(2024, 1, 31), 10, type="gas"),
            _make_reading("G1", datetime(2024, 2, 28), 90, type="gas"),
        ]
        assert total_for_period(readings, FEB_START, FEB_END, ["electricity"]).total == 75
        assert total_for_period(readings, FEB_START, FEB_END, ["electricity", "gas"]) == PeriodTotal(155, 3)

    def test_negative_delta_is_not_clamped(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, 31), 500),
            _make_reading("M1", datetime(2024, 2, 15), 20),  # meter replaced
        ]
        assert total_for_period(readings, FEB_START, FEB_END, ["electricity"]).total == -480

    def test_insertion_order_is_irrelevant(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, day), 100 + day * 3) for day in range(1, 29)
        ] + [
            _make_reading("M1", datetime(2024, 2, day), 200 + day * 4) for day in range(1, 29)
        ]
        expected = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        shuffled = list(readings)
        random.Random(7).shuffle(shuffled)
        assert total_for_period(shuffled, FEB_START, FEB_END, ["electricity"]) == expected

    def test_repeated_calls_are_identical(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, 20), 100.1),
            _make_reading("M1", datetime(2024, 2, 10), 150.7),
        ]
        first = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        second = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        assert first == second

    def test_production_types_use_the_same_arithmetic(self) -> None:
        readings = [
            _make_reading("S1", datetime(2024, 1, 31), 40, type="solar"),
            _make_reading("S1", datetime(2024, 2, 20), 95, type="solar"),
        ]
        assert total_for_period(readings, FEB_START, FEB_END, ["production", "solar"]).total == 55

    def test_empty_snapshot(self) -> None:
        assert total_for_period([], FEB_START, FEB_END, ["electricity"]) == PeriodTotal()

    def test_unusable_values_are_skipped(self) -> None:
        readings = [
            _make_reading("M1", datetime(2024, 1, 1), 1000),
            MeterReading.from_record({
                "id": "bad", "meterId": "M1", "type": "electricity", "reading": None,
                "timestamp": "2024-02-10T00:00:00",
            }),
            _make_reading("M1", datetime(2024, 2, 20), 1150),
            _make_reading("M2", datetime(2024, 1, 1), 50),
            _make_reading("M2", datetime(2024, 2, 5), math.nan),
        ]
        result = total_for_period(readings, FEB_START, FEB_END, ["electricity"])
        assert result == PeriodTotal(total=150, reading_count=1)
        assert math.isfinite(result.total)

    def test_only_unusable_values_give_zero(self) -> None:
        readings = [_make_reading("M1", datetime(2024, 2, 10), math.nan)]
        assert total_for_period(readings, FEB_START, FEB_END, ["electricity"]) == PeriodTotal()


class TestMeterSeries:
    def test_lookups(self) -> None:
        series = MeterSeries.build("M1", [
            _make_reading("M1", datetime(2024, 2, 10), 20),
            _make_reading("M1", datetime(2024, 1, 10), 10),
            _make_reading("M1", datetime(2024, 3, 10), 30),
        ])
        assert [r.value for r in series.readings] == [10, 20, 30]
        assert series.anchor(datetime(2024, 2, 10)).value == 10
        assert series.last_until(datetime(2024, 2, 10)).value == 20
        assert series.first_from(datetime(2024, 2, 11)).value == 30
        assert series.anchor(datetime(2024, 1, 1)) is None
        assert series.first_from(datetime(2024, 4, 1)) is None
        assert len(series.in_period(datetime(2024, 1, 10), datetime(2024, 2, 10))) == 2
