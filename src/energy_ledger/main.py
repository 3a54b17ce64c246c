"""Energy Ledger command-line entry point.

Every command loads config, opens the SQLite store, performs one action and
prints its result as JSON on stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from energy_ledger.config.schema import AppConfig
from energy_ledger.db.engine import close_db, init_db
from energy_ledger.db.repository import Repository
from energy_ledger.ledger import EnergyLedger
from energy_ledger.logging.context import bind_context, clear_context
from energy_ledger.logging.structured import setup_logging
from energy_ledger.models import CalculationPolicy, Device, EnergyProvider, ReadingDraft
from energy_ledger.periods import Period
from energy_ledger.settings import get_config_manager, load_settings
from energy_ledger.timezone_utils import resolve_timezone

logger = logging.getLogger(__name__)


def _json_default(obj: Any) -> Any:
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    raise TypeError(f"Not JSON serialisable: {type(obj).__name__}")


def _emit(payload: Any) -> None:
    json.dump(payload, sys.stdout, default=_json_default, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="energy-ledger", description=__doc__)
    parser.add_argument("--config", type=Path, default=None, help="User config file (default: config.yaml)")
    parser.add_argument("--defaults", type=Path, default=None, help="Defaults file (default: config.defaults.yaml)")
    parser.add_argument("--db-path", default="", help="Overrides db.path from the config")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Record a meter reading")
    add.add_argument("meter_id")
    add.add_argument("type")
    add.add_argument("value", help='Reading value, German notation accepted ("1.234,5")')
    add.add_argument("--name", default="")
    add.add_argument("--unit", default="kWh")
    add.add_argument("--timestamp", type=datetime.fromisoformat, default=None)
    add.add_argument("--device-id", default=None)
    add.add_argument("--notes", default=None)
    add.add_argument("--yes", action="store_true", help="Confirm implausibly high readings")

    remove = sub.add_parser("remove", help="Delete a reading")
    remove.add_argument("reading_id")

    report = sub.add_parser("report", help="Costs and statistics per period")
    report.add_argument("--period", choices=[p.value for p in Period], default=None)
    report.add_argument("--date", type=datetime.fromisoformat, default=None)

    sub.add_parser("history", help="Readings with differences, newest first")

    daily = sub.add_parser("daily", help="Daily consumption and cost table")
    daily.add_argument("--since", type=datetime.fromisoformat, default=None)
    daily.add_argument("--type", dest="energy_type", default=None)
    daily.add_argument("--search", default=None)

    device = sub.add_parser("device", help="Register or update a device")
    device.add_argument("device_id")
    device.add_argument("--name", default="")
    device.add_argument("--type", dest="device_type", default="meter")
    device.add_argument("--meter-type", default=None)
    device.add_argument(
        "--calculation", choices=[p.value for p in CalculationPolicy],
        default=CalculationPolicy.CUMULATIVE.value,
    )

    provider = sub.add_parser("provider", help="Register or update a tariff")
    provider.add_argument("type")
    provider.add_argument("price_per_unit", type=float)
    provider.add_argument("--basic-fee", type=float, default=0.0)
    provider.add_argument("--name", default="")
    provider.add_argument("--id", dest="provider_id", default=None)

    threshold = sub.add_parser("set-threshold", help="Set the daily plausibility limit of a type")
    threshold.add_argument("type")
    threshold.add_argument("limit", type=float)
    return parser


async def run_command(args: argparse.Namespace, config: AppConfig) -> int:
    clear_context()
    bind_context(command=args.command)
    db = await init_db(args.db_path or config.db.path)
    try:
        ledger = EnergyLedger(Repository(db, resolve_timezone(config.timezone)), config)
        return await _dispatch(args, ledger)
    finally:
        await close_db()


async def _dispatch(args: argparse.Namespace, ledger: EnergyLedger) -> int:
    if args.command == "add":
        outcome = await ledger.add_reading(
            ReadingDraft(
                meter_id=args.meter_id,
                type=args.type,
                value=args.value,
                timestamp=args.timestamp,
                meter_name=args.name or args.meter_id,
                unit=args.unit,
                notes=args.notes,
                device_id=args.device_id,
            ),
            confirm=args.yes,
        )
        _emit({
            "saved": outcome.saved,
            "requires_confirmation": outcome.requires_confirmation,
            "error": outcome.validation.error,
            "warning": outcome.validation.warning,
            "reading": outcome.reading.to_record() if outcome.reading else None,
        })
        return 0 if outcome.saved else 1

    if args.command == "remove":
        removed = await ledger.remove_reading(args.reading_id)
        _emit({"removed": removed})
        return 0 if removed else 1

    if args.command == "report":
        report = (await ledger.recompute(args.date)).to_dict()
        if args.period:
            report = {
                "generated_at": report["generated_at"],
                "costs": report["costs"][args.period],
                "stats": report["stats"][args.period],
                "display": report["display"][args.period],
            }
        _emit(report)
        return 0

    if args.command == "history":
        _emit([
            {**a.reading.to_record(), "difference": a.difference, "total_consumption": a.total_consumption}
            for a in await ledger.history()
        ])
        return 0

    if args.command == "daily":
        _emit(asdict(await ledger.daily_costs(args.since, args.energy_type, args.search)))
        return 0

    if args.command == "device":
        device = await ledger.repo.upsert_device(
            Device(
                id=args.device_id,
                name=args.name,
                type=args.device_type,
                meter_type=args.meter_type,
                calculation_type=CalculationPolicy(args.calculation),
            )
        )
        _emit(device.to_record())
        return 0

    if args.command == "provider":
        provider = await ledger.repo.upsert_provider(
            EnergyProvider(
                id=args.provider_id or uuid.uuid4().hex,
                type=args.type,
                price_per_unit=args.price_per_unit,
                basic_fee=args.basic_fee,
                name=args.name,
            )
        )
        _emit(provider.to_record())
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Entry point for the application."""
    args = build_parser().parse_args(argv)
    config = load_settings(args.defaults, args.config)

    setup_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_file=config.logging.file,
    )

    if args.command == "set-threshold":
        config = get_config_manager().set_daily_threshold(args.type, args.limit)
        _emit(config.validation.model_dump())
        return 0

    return asyncio.run(run_command(args, config))


if __name__ == "__main__":
    sys.exit(main())
