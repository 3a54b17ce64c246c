"""Tests for timezone resolution."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from energy_ledger.timezone_utils import localize, resolve_timezone


def test_unknown_name_falls_back_to_a_timezone() -> None:
    assert resolve_timezone("Not/AZone") is not None


def test_localize_naive_attaches_zone() -> None:
    tz = timezone(timedelta(hours=2))
    result = localize(datetime(2024, 6, 1, 12), tz)
    assert result.tzinfo is tz
    assert result.hour == 12


def test_localize_aware_converts() -> None:
    tz = timezone(timedelta(hours=2))
    result = localize(datetime(2024, 6, 1, 12, tzinfo=timezone.utc), tz)
    assert result.hour == 14
    assert result == datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
