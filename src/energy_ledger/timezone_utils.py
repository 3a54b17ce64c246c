"""Timezone lookup and naive/aware datetime normalisation."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

# Standard-time offsets for hosts without IANA tzdata
_FIXED_OFFSETS: dict[str, timedelta] = {
    "Europe/Berlin": timedelta(hours=1),
    "Europe/Vienna": timedelta(hours=1),
    "Europe/Zurich": timedelta(hours=1),
    "Europe/Moscow": timedelta(hours=3),
}


def resolve_timezone(name: str) -> tzinfo:
    """Zone for *name*, degrading to a fixed offset, the host zone, then UTC."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Timezone %r not in the IANA database, using a fallback", name)

    offset = _FIXED_OFFSETS.get(name)
    if offset is not None:
        return timezone(offset, name)
    return datetime.now().astimezone().tzinfo or timezone.utc


def localize(dt: datetime, tz: tzinfo) -> datetime:
    """Attach *tz* to a naive datetime; convert an aware one into *tz*."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)
