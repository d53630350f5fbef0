"""Join backlog snapshots onto counted-change totals at person and month level."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

import polars as pl

from delivery_rate.application.aggregation import Aggregation
from delivery_rate.domain.models import BacklogSnapshotEntry, MonthlyBucket
from delivery_rate.domain.organization import OfficeInfo, OrganizationDirectory, person_key
from delivery_rate.errors import SchemaValidationError
from delivery_rate.logger import get_logger

logger = get_logger(__name__)

SNAPSHOT_SCHEMA = {"year_month": pl.Utf8, "person": pl.Utf8, "count": pl.Int64}


@dataclass(frozen=True)
class JoinedBuckets:
    monthly: tuple[MonthlyBucket, ...]
    persons: dict[str, tuple[MonthlyBucket, ...]]
    person_offices: dict[str, OfficeInfo]


def as_snapshot_entry(raw: BacklogSnapshotEntry | Mapping[str, Any]) -> BacklogSnapshotEntry:
    if isinstance(raw, BacklogSnapshotEntry):
        return raw
    return BacklogSnapshotEntry.from_row(raw)


def _snapshot_frame(snapshots: Sequence[BacklogSnapshotEntry], year_months: Sequence[str]) -> pl.DataFrame:
    frame = pl.DataFrame(
        {
            "year_month": [entry.fiscal_year_month for entry in snapshots],
            "person": [person_key(entry.person_name) for entry in snapshots],
            "count": [entry.open_order_count for entry in snapshots],
        },
        schema=SNAPSHOT_SCHEMA,
    )
    return frame.filter(pl.col("year_month").is_in(list(year_months)))


def sum_snapshots(
    snapshots: Sequence[BacklogSnapshotEntry],
    year_months: Sequence[str],
) -> tuple[dict[str, int], dict[str, dict[str, int]]]:
    """Backlog per month and per (person key, month); partial snapshots for the same key are summed."""
    frame = _snapshot_frame(snapshots, year_months)
    by_month = {year_month: 0 for year_month in year_months}
    for row in frame.group_by("year_month").agg(pl.col("count").sum().alias("backlog")).to_dicts():
        by_month[str(row["year_month"])] = int(row["backlog"] or 0)

    by_person: dict[str, dict[str, int]] = {}
    person_rows = (
        frame.group_by(["person", "year_month"])
        .agg(pl.col("count").sum().alias("backlog"))
        .sort(["person", "year_month"])
        .to_dicts()
    )
    for row in person_rows:
        by_person.setdefault(str(row["person"]), {})[str(row["year_month"])] = int(row["backlog"] or 0)
    return by_month, by_person


def _snapshot_entries(
    snapshots: Iterable[BacklogSnapshotEntry | Mapping[str, Any]] | None,
) -> list[BacklogSnapshotEntry]:
    entries: list[BacklogSnapshotEntry] = []
    for raw in snapshots or []:
        try:
            entries.append(as_snapshot_entry(raw))
        except SchemaValidationError as exc:
            logger.warning("Skipping snapshot entry %r: %s", raw, exc)
    return entries


def join_backlog(
    aggregation: Aggregation,
    snapshots: Iterable[BacklogSnapshotEntry | Mapping[str, Any]] | None,
    directory: OrganizationDirectory,
) -> JoinedBuckets:
    """Join on person_key(); the returned maps are keyed by display name."""
    entries = _snapshot_entries(snapshots)
    year_months = aggregation.year_months
    if not entries:
        logger.warning("No backlog snapshots supplied; backlog counts and rates default to 0")
    backlog_by_month, backlog_by_person = sum_snapshots(entries, year_months)

    monthly = tuple(
        MonthlyBucket(
            change_count=aggregation.monthly_change_counts.get(year_month, 0),
            backlog_count=backlog_by_month.get(year_month, 0),
        )
        for year_month in year_months
    )

    offices_by_key = dict(aggregation.person_offices)
    names_by_key = dict(aggregation.person_names)
    for entry in entries:
        key = person_key(entry.person_name)
        if key in backlog_by_person and key not in offices_by_key:
            offices_by_key[key] = directory.resolve(entry.person_name)
            names_by_key[key] = entry.person_name

    persons: dict[str, tuple[MonthlyBucket, ...]] = {}
    person_offices: dict[str, OfficeInfo] = {}
    for key, info in offices_by_key.items():
        changes = aggregation.person_change_counts.get(key, {})
        backlog = backlog_by_person.get(key, {})
        name = names_by_key[key]
        person_offices[name] = info
        persons[name] = tuple(
            MonthlyBucket(change_count=changes.get(year_month, 0), backlog_count=backlog.get(year_month, 0))
            for year_month in year_months
        )

    logger.info(
        "Joined %d snapshot entries: persons=%d (snapshot-only=%d)",
        len(entries),
        len(persons),
        len(offices_by_key) - len(aggregation.person_offices),
    )
    return JoinedBuckets(monthly=monthly, persons=persons, person_offices=person_offices)
