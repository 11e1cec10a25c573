#!/usr/bin/env python3
"""Operator command line for an airpickup database.

Usage
-----
Point the tool at a database (and optionally an AviationStack key)::

    export DATABASE_URL="sqlite:///airpickup.db"
    export AVIATIONSTACK_API_KEY="..."

    python scripts/pickup_cli.py import guests.csv
    python scripts/pickup_cli.py guests --json
    python scripts/pickup_cli.py assign --capacity 4
    python scripts/pickup_cli.py reconcile
    python scripts/pickup_cli.py status XY 100 --date 2026-05-01

The CSV needs a header row with ``name, phone, flight, airline, origin,
destination, date, time`` (``phone`` and ``destination`` may be empty).
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from airpickup import PickupConfig, PickupError, PickupManager  # noqa: E402
from airpickup.models import Car, Guest  # noqa: E402

# ── output ───────────────────────────────────────────────────


def _print_guests(guests: list[Guest]) -> None:
    for guest in guests:
        car = f"car {guest.car_assigned}" if guest.car_assigned is not None else "no car"
        print(f"#{guest.id:<4} {guest.name:<30} {guest.status.value:<10} {guest.final_eta:%Y-%m-%d %H:%M} {car}")
        for leg in guest.legs:
            print(f"        {leg.leg_order}: {leg.flight_code:<8} {leg.origin} -> {leg.destination}  {leg.status.value}")


def _print_cars(cars: list[Car]) -> None:
    for car in cars:
        seats = ", ".join(str(p) for p in car.passengers) or "-"
        print(f"Car {car.id:<3} {car.flight or '':<8} {len(car.passengers)}/{car.capacity}  guests: {seats}")


def _emit(items: list[Any], json_mode: bool, printer: Any) -> None:
    if json_mode:
        print(json.dumps([item.to_json_dict() for item in items], indent=2, ensure_ascii=False))
    else:
        printer(items)


# ── commands ─────────────────────────────────────────────────


async def _run(args: argparse.Namespace) -> int:
    config = PickupConfig.from_env()
    async with PickupManager(config) as manager:
        if args.command == "import":
            with open(args.csv_file, newline="", encoding="utf-8") as fh:
                rows = list(csv.DictReader(fh))
            guests = await manager.import_guests(rows)
            _emit(guests, args.json_mode, _print_guests)
        elif args.command == "guests":
            _emit(await manager.list_guests(), args.json_mode, _print_guests)
        elif args.command == "cars":
            _emit(await manager.list_cars(), args.json_mode, _print_cars)
        elif args.command == "assign":
            _emit(await manager.auto_assign_cars(args.capacity), args.json_mode, _print_cars)
        elif args.command == "reconcile":
            report = await manager.reconcile_now()
            print(
                f"checked={report.checked} changed={report.changed} "
                f"unavailable={report.unavailable} failed_writes={report.failed_writes} "
                f"took={report.duration:.1f}s"
            )
        elif args.command == "status":
            day = date.fromisoformat(args.date) if args.date else None
            status = await manager.flight_status(args.flight, args.airline, day)
            print(status.value)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage airport pickup guests and cars.")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Bulk-import guests from a CSV file")
    p_import.add_argument("csv_file")
    sub.add_parser("guests", help="List guests with their legs")
    sub.add_parser("cars", help="List cars")
    p_assign = sub.add_parser("assign", help="Rebuild all cars from the guest list")
    p_assign.add_argument("--capacity", type=int, default=None)
    sub.add_parser("reconcile", help="Refresh flight statuses once")
    p_status = sub.add_parser("status", help="Look up one flight")
    p_status.add_argument("airline")
    p_status.add_argument("flight")
    p_status.add_argument("--date", help="YYYY-MM-DD (default: today, UTC)")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(_run(args))
    except PickupError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
