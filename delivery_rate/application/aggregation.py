"""Aggregator: fold classified events into monthly, per-person and responsibility accumulators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import polars as pl

from delivery_rate.domain.models import ClassifiedEvent, JudgmentTally, ResponsibilityItem
from delivery_rate.domain.organization import OfficeInfo, person_key
from delivery_rate.domain.responsibility import CATEGORIES, taxonomy_pairs
from delivery_rate.logger import get_logger

logger = get_logger(__name__)

COUNT_SCHEMA = {"person": pl.Utf8, "year_month": pl.Utf8}


@dataclass(frozen=True)
class Aggregation:
    year_months: list[str]
    monthly_change_counts: dict[str, int]
    # Person-keyed maps use person_key(); person_names holds the display name per key.
    person_change_counts: dict[str, dict[str, int]]
    person_offices: dict[str, OfficeInfo]
    person_names: dict[str, str]
    responsibility_items: list[ResponsibilityItem]
    judgment_tallies: list[JudgmentTally]
    unmatched_responsibility_count: int
    records: list[ClassifiedEvent]
    record_count: int
    records_truncated: bool


def _counted_frame(counted: Sequence[ClassifiedEvent]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "person": [person_key(event.person_name) for event in counted],
            "year_month": [event.application_fiscal_month for event in counted],
        },
        schema=COUNT_SCHEMA,
    )


def _count_changes(
    counted: Sequence[ClassifiedEvent],
    year_months: Sequence[str],
) -> tuple[dict[str, int], dict[str, dict[str, int]]]:
    frame = _counted_frame(counted)
    monthly = {year_month: 0 for year_month in year_months}
    for row in frame.group_by("year_month").agg(pl.len().alias("change_count")).to_dicts():
        monthly[str(row["year_month"])] = int(row["change_count"])

    by_person: dict[str, dict[str, int]] = {}
    person_rows = (
        frame.group_by(["person", "year_month"])
        .agg(pl.len().alias("change_count"))
        .sort(["person", "year_month"])
        .to_dicts()
    )
    for row in person_rows:
        person_months = by_person.setdefault(str(row["person"]), {})
        person_months[str(row["year_month"])] = int(row["change_count"])
    return monthly, by_person


def _responsibility_crosstab(
    counted: Sequence[ClassifiedEvent],
    year_months: Sequence[str],
) -> tuple[list[ResponsibilityItem], int]:
    # Seed every taxonomy row before folding so the table shape never depends on the data.
    grid: dict[tuple[str, str], dict[str, int]] = {
        pair: {year_month: 0 for year_month in year_months} for pair in taxonomy_pairs()
    }
    unmatched = 0
    for event in counted:
        key = (event.responsibility_category, event.change_reason)
        cells = grid.get(key)
        if cells is None:
            unmatched += 1
            continue
        cells[str(event.application_fiscal_month)] += 1
    items = [
        ResponsibilityItem(category=category, reason=reason, monthly_counts=cells)
        for (category, reason), cells in grid.items()
    ]
    return items, unmatched


def _judgment_tallies(counted: Sequence[ClassifiedEvent]) -> list[JudgmentTally]:
    tallies: dict[str, dict[str, int]] = {category: {} for category in CATEGORIES}
    for event in counted:
        counts = tallies.setdefault(event.responsibility_category, {})
        if event.judgment1 is not None:
            key = "judgment1_yes" if event.judgment1 else "judgment1_no"
            counts[key] = counts.get(key, 0) + 1
        if event.judgment2 is not None:
            key = "judgment2_yes" if event.judgment2 else "judgment2_no"
            counts[key] = counts.get(key, 0) + 1
    return [JudgmentTally(category=category, **counts) for category, counts in tallies.items()]


def aggregate_events(
    events: Sequence[ClassifiedEvent],
    year_months: Sequence[str],
    drilldown_limit: int = 200,
) -> Aggregation:
    """Fold counted events whose application month is inside ``year_months``."""
    month_set = set(year_months)
    in_period = [event for event in events if event.application_fiscal_month in month_set]
    counted = [event for event in in_period if event.is_counted]

    person_offices: dict[str, OfficeInfo] = {}
    person_names: dict[str, str] = {}
    for event in in_period:
        key = person_key(event.person_name)
        if key not in person_offices:
            person_offices[key] = OfficeInfo(office=event.office, region=event.region)
            person_names[key] = event.person_name

    monthly, by_person = _count_changes(counted, year_months)
    responsibility_items, unmatched = _responsibility_crosstab(counted, year_months)
    tallies = _judgment_tallies(counted)

    logger.info(
        "Aggregated %d events: in_period=%d counted=%d persons=%d unmatched_responsibility=%d",
        len(events),
        len(in_period),
        len(counted),
        len(person_offices),
        unmatched,
    )

    return Aggregation(
        year_months=list(year_months),
        monthly_change_counts=monthly,
        person_change_counts=by_person,
        person_offices=person_offices,
        person_names=person_names,
        responsibility_items=responsibility_items,
        judgment_tallies=tallies,
        unmatched_responsibility_count=unmatched,
        records=list(events[:drilldown_limit]),
        record_count=len(events),
        records_truncated=len(events) > drilldown_limit,
    )
