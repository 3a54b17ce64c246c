"""SQL table definitions for readings, devices and energy providers."""

SCHEMA_VERSION = 1

TABLES = [
    # ── Meter readings ──────────────────────────────────────
    """
    CREATE TABLE IF NOT EXISTS meter_readings (
        id          TEXT PRIMARY KEY,
        meter_id    TEXT NOT NULL,
        meter_name  TEXT NOT NULL DEFAULT '',
        type        TEXT NOT NULL,
        reading     REAL,
        timestamp   TEXT NOT NULL,
        unit        TEXT NOT NULL DEFAULT 'kWh',
        notes       TEXT,
        device_id   TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_readings_meter ON meter_readings(meter_id, timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_readings_timestamp ON meter_readings(timestamp)",

    # ── Devices / meters ────────────────────────────────────
    """
    CREATE TABLE IF NOT EXISTS devices (
        id                  TEXT PRIMARY KEY,
        name                TEXT NOT NULL DEFAULT '',
        type                TEXT NOT NULL DEFAULT 'meter',
        meter_type          TEXT,
        calculation_type    TEXT NOT NULL DEFAULT 'difference',
        unit                TEXT,
        location            TEXT,
        provider_id         TEXT
    )
    """,

    # ── Energy providers (tariffs) ──────────────────────────
    """
    CREATE TABLE IF NOT EXISTS energy_providers (
        id              TEXT PRIMARY KEY,
        name            TEXT NOT NULL DEFAULT '',
        type            TEXT NOT NULL,
        price_per_unit  REAL NOT NULL DEFAULT 0,
        basic_fee       REAL NOT NULL DEFAULT 0,
        feed_in_tariff  REAL,
        valid_from      TEXT,
        valid_to        TEXT,
        meter_id        TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_providers_type ON energy_providers(type)",

    # ── Schema version ──────────────────────────────────────
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        id      INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL
    )
    """,
]
