"""Delivery-change rate report use case."""

from __future__ import annotations

import asyncio
from functools import partial
from pathlib import Path
from time import perf_counter
from typing import Any, Iterable, Mapping

from delivery_rate.application.aggregation import aggregate_events
from delivery_rate.application.classification_service import classify_events
from delivery_rate.application.rate_joiner import join_backlog
from delivery_rate.application.reporting.assembler import Report, assemble_report
from delivery_rate.application.reporting.metrics import fmt_pct
from delivery_rate.config import EngineSettings
from delivery_rate.domain.fiscal_calendar import FiscalCalendar
from delivery_rate.domain.models import BacklogSnapshotEntry, ChangeEvent
from delivery_rate.domain.organization import DEFAULT_DIRECTORY, OrganizationDirectory
from delivery_rate.errors import SchemaValidationError
from delivery_rate.infrastructure.record_repository import (
    fetch_report_inputs,
    load_backlog_snapshots,
    load_change_events,
)
from delivery_rate.infrastructure.report_exporter import save_report_json, save_report_workbook
from delivery_rate.logger import get_logger

logger = get_logger(__name__)

REPORT_JSON_NAME = "delivery_change_report.json"
REPORT_EXCEL_NAME = "delivery_change_report.xlsx"


def _validate_period(period: Any) -> int:
    if isinstance(period, bool) or not isinstance(period, int) or period < 1:
        raise SchemaValidationError(f"period must be a positive integer, got {period!r}", field="period")
    return period


def compute_report(
    period: int,
    events: Iterable[ChangeEvent | Mapping[str, Any]],
    snapshots: Iterable[BacklogSnapshotEntry | Mapping[str, Any]] | None = None,
    *,
    settings: EngineSettings | None = None,
    directory: OrganizationDirectory | None = None,
) -> Report:
    """Pure transformation: (period, events, snapshots) -> Report.

    ``snapshots`` may be None or empty when the snapshot source is not
    configured; backlog counts and rates then stay at zero.
    """
    period = _validate_period(period)
    settings = settings or EngineSettings()
    directory = directory or DEFAULT_DIRECTORY
    calendar = FiscalCalendar(start_month=settings.fiscal_start_month, period_offset=settings.period_offset)
    year_months = calendar.fiscal_year_months(period)

    classified = classify_events(events, calendar, directory, settings)
    aggregation = aggregate_events(classified, year_months, drilldown_limit=settings.drilldown_limit)
    joined = join_backlog(aggregation, snapshots, directory)
    return assemble_report(period, calendar, aggregation, joined)


def run_reporting_pipeline(
    period: int,
    events_path: Path,
    snapshots_path: Path | None = None,
    settings: EngineSettings | None = None,
) -> Report:
    settings = settings or EngineSettings()
    pipeline_start = perf_counter()
    stage_start = pipeline_start
    stage_timings: list[tuple[str, float]] = []

    def _mark(stage_name: str) -> None:
        nonlocal stage_start
        now = perf_counter()
        stage_timings.append((stage_name, now - stage_start))
        stage_start = now

    snapshot_loader = partial(load_backlog_snapshots, snapshots_path) if snapshots_path is not None else None
    inputs = asyncio.run(fetch_report_inputs(partial(load_change_events, events_path), snapshot_loader))
    _mark("fetch_report_inputs")

    report = compute_report(period, inputs.events, inputs.snapshots, settings=settings)
    _mark("compute_report")

    output_json_path = settings.output_dir / REPORT_JSON_NAME
    output_excel_path = settings.output_dir / REPORT_EXCEL_NAME
    save_report_json(output_json_path, report)
    excel_saved, excel_error_message = save_report_workbook(output_excel_path, report)
    _mark("save_outputs")
    total_elapsed = perf_counter() - pipeline_start

    logger.info(
        "Report prepared: period=%d, changes=%d, backlog=%d, rate=%s, persons=%d",
        report.period,
        report.total_change_count,
        report.total_backlog_count,
        fmt_pct(report.overall_change_rate),
        len(report.persons),
    )
    stage_text = ", ".join([f"{name}={seconds:.3f}s" for name, seconds in stage_timings])
    logger.info("Stage Timing: %s", stage_text)
    logger.info("Total Elapsed: %.3fs", total_elapsed)
    logger.info("Saved JSON: %s", output_json_path)
    if excel_saved:
        logger.info("Saved Excel: %s", output_excel_path)
    else:
        logger.warning("Excel save skipped (file may be open/locked): %s", excel_error_message)
    return report
