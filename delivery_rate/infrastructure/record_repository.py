"""Record source adapters: load change events and backlog snapshots from store exports."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from delivery_rate.domain.models import BacklogSnapshotEntry, ChangeEvent
from delivery_rate.errors import DataFetchError, SchemaValidationError
from delivery_rate.ingestion import change_event_from_fields, read_records, snapshot_from_fields
from delivery_rate.logger import get_logger

logger = get_logger(__name__)

EventLoader = Callable[[], Sequence[ChangeEvent]]
SnapshotLoader = Callable[[], Sequence[BacklogSnapshotEntry]]


@dataclass(frozen=True)
class ReportInputs:
    events: list[ChangeEvent]
    snapshots: list[BacklogSnapshotEntry] = field(default_factory=list)


def load_change_events(path: str | Path) -> list[ChangeEvent]:
    source = Path(path)
    try:
        records = read_records(source)
    except Exception as exc:
        raise DataFetchError(f"Failed to read change events: {exc}", source=str(source)) from exc

    events = [change_event_from_fields(record_id, fields) for record_id, fields in records]
    logger.info("Loaded %d change events from %s", len(events), source)
    return events


def load_backlog_snapshots(path: str | Path | None) -> list[BacklogSnapshotEntry]:
    """Snapshots are optional; a missing source yields an empty list and bad rows are skipped."""
    if path is None:
        return []
    source = Path(path)
    if not source.exists():
        logger.warning("Snapshot source not found, backlog counts will be zero: %s", source)
        return []
    try:
        records = read_records(source)
    except Exception as exc:
        raise DataFetchError(f"Failed to read backlog snapshots: {exc}", source=str(source)) from exc

    snapshots: list[BacklogSnapshotEntry] = []
    for record_id, fields in records:
        try:
            snapshots.append(snapshot_from_fields(fields))
        except SchemaValidationError as exc:
            logger.warning("Skipping snapshot record %s: %s", record_id, exc)
    logger.info("Loaded %d of %d backlog snapshot rows from %s", len(snapshots), len(records), source)
    return snapshots


async def fetch_report_inputs(
    event_loader: EventLoader,
    snapshot_loader: SnapshotLoader | None = None,
) -> ReportInputs:
    """Fetch both sources concurrently.

    An event failure fails the fetch. A snapshot failure degrades to an
    empty snapshot list so the report still renders with zero backlog.
    """

    async def _no_snapshots() -> list[BacklogSnapshotEntry]:
        return []

    snapshot_task = asyncio.to_thread(snapshot_loader) if snapshot_loader is not None else _no_snapshots()
    events_result, snapshots_result = await asyncio.gather(
        asyncio.to_thread(event_loader),
        snapshot_task,
        return_exceptions=True,
    )

    if isinstance(events_result, BaseException):
        if isinstance(events_result, DataFetchError):
            raise events_result
        raise DataFetchError(f"Event source failed: {events_result}", source="events") from events_result

    if isinstance(snapshots_result, BaseException):
        if not isinstance(snapshots_result, Exception):
            raise snapshots_result
        logger.warning("Snapshot source failed, continuing without backlog: %s", snapshots_result)
        snapshots_result = []

    return ReportInputs(events=list(events_result), snapshots=list(snapshots_result))
