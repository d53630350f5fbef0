"""Delivery-change rate report entrypoint."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from delivery_rate.application import run_reporting_pipeline
from delivery_rate.config import PROJECT_ROOT, EngineSettings
from delivery_rate.domain.fiscal_calendar import FiscalCalendar
from delivery_rate.errors import DeliveryRateError
from delivery_rate.logger import setup_logger

DEFAULT_EVENTS_PATH = PROJECT_ROOT / "data" / "raw" / "delivery_changes.json"
DEFAULT_SNAPSHOTS_PATH = PROJECT_ROOT / "data" / "raw" / "backlog_snapshots.json"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delivery-date change rate report")
    parser.add_argument("--period", type=int, help="Fiscal period number (default: current period)")
    parser.add_argument("--events", type=Path, default=DEFAULT_EVENTS_PATH, help="Change event export (.json/.xlsx)")
    parser.add_argument(
        "--snapshots",
        type=Path,
        default=DEFAULT_SNAPSHOTS_PATH,
        help="Monthly backlog snapshot export (.json/.xlsx); optional",
    )
    parser.add_argument("--output-dir", type=Path, help="Directory for report JSON/Excel output")
    parser.add_argument("--log-file", action="store_true", help="Also write a daily log file under logs/")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = EngineSettings.from_env()
    except DeliveryRateError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    logger = setup_logger("delivery_rate", level=settings.log_level, log_to_file=args.log_file)
    if args.output_dir is not None:
        settings = replace(settings, output_dir=args.output_dir)

    calendar = FiscalCalendar(start_month=settings.fiscal_start_month, period_offset=settings.period_offset)
    period = args.period if args.period is not None else calendar.current_period()
    logger.info("Delivery-change report: period=%d, events=%s, snapshots=%s", period, args.events, args.snapshots)

    try:
        run_reporting_pipeline(period, args.events, args.snapshots, settings=settings)
    except DeliveryRateError as exc:
        logger.error("Report failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
