"""Report assembly: ordered region → office → person tree plus responsibility tables."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from delivery_rate.application.aggregation import Aggregation
from delivery_rate.application.rate_joiner import JoinedBuckets
from delivery_rate.application.reporting.ordering import office_sort_key, ordered_regions, person_sort_key
from delivery_rate.domain.dates import format_date
from delivery_rate.domain.fiscal_calendar import FiscalCalendar
from delivery_rate.domain.models import (
    ClassifiedEvent,
    JudgmentTally,
    MonthlyBucket,
    OfficeSummary,
    PersonSummary,
    RegionSummary,
    ResponsibilityItem,
    rate,
    sum_buckets,
)
from delivery_rate.domain.organization import region_of


@dataclass(frozen=True)
class Report:
    period: int
    date_range: tuple[date, date]
    year_months: list[str]
    month_names: list[str]
    monthly: tuple[MonthlyBucket, ...]
    regions: tuple[RegionSummary, ...]
    responsibility: list[ResponsibilityItem]
    judgment_tallies: list[JudgmentTally]
    unmatched_responsibility_count: int
    records: list[ClassifiedEvent]
    record_count: int
    records_truncated: bool

    @property
    def total_change_count(self) -> int:
        return sum(bucket.change_count for bucket in self.monthly)

    @property
    def total_backlog_count(self) -> int:
        return sum(bucket.backlog_count for bucket in self.monthly)

    @property
    def overall_change_rate(self) -> float:
        return rate(self.total_change_count, self.total_backlog_count)

    @property
    def offices(self) -> list[OfficeSummary]:
        offices = [office for region in self.regions for office in region.offices]
        return sorted(offices, key=lambda office: office_sort_key(office.name))

    @property
    def persons(self) -> list[PersonSummary]:
        return [person for office in self.offices for person in office.persons]

    def monthly_rows(self, buckets: tuple[MonthlyBucket, ...]) -> list[dict[str, Any]]:
        return [
            {
                "month": self.month_names[idx],
                "monthIndex": idx,
                "yearMonth": self.year_months[idx],
                "changeCount": bucket.change_count,
                "backlogCount": bucket.backlog_count,
                "changeRate": bucket.change_rate,
            }
            for idx, bucket in enumerate(buckets)
        ]

    def _person_dict(self, person: PersonSummary) -> dict[str, Any]:
        return {
            "name": person.name,
            "office": person.office,
            "region": person.region,
            "totalChangeCount": person.total_change_count,
            "totalBacklogCount": person.total_backlog_count,
            "changeRate": person.change_rate,
            "monthlyData": self.monthly_rows(person.monthly),
        }

    def _office_dict(self, office: OfficeSummary) -> dict[str, Any]:
        return {
            "name": office.name,
            "region": office.region,
            "totalChangeCount": office.total_change_count,
            "totalBacklogCount": office.total_backlog_count,
            "changeRate": office.change_rate,
            "monthlyData": self.monthly_rows(office.monthly),
            "tantoushaList": [self._person_dict(person) for person in office.persons],
        }

    def to_dict(self) -> dict[str, Any]:
        """JSON payload with the camelCase keys the dashboard consumes."""
        return {
            "period": self.period,
            "dateRange": {"start": format_date(self.date_range[0]), "end": format_date(self.date_range[1])},
            "totalChangeCount": self.total_change_count,
            "totalBacklogCount": self.total_backlog_count,
            "overallChangeRate": self.overall_change_rate,
            "monthlyData": self.monthly_rows(self.monthly),
            "byRegion": [
                {
                    "name": region.name,
                    "changeCount": region.total_change_count,
                    "backlogCount": region.total_backlog_count,
                    "changeRate": region.change_rate,
                    "monthlyData": self.monthly_rows(region.monthly),
                    "offices": [self._office_dict(office) for office in region.offices],
                }
                for region in self.regions
            ],
            "byOffice": [self._office_dict(office) for office in self.offices],
            "byTantousha": [self._person_dict(person) for person in self.persons],
            "responsibility": [item.to_dict() for item in self.responsibility],
            "judgmentTally": [tally.to_dict() for tally in self.judgment_tallies],
            "unmatchedResponsibilityCount": self.unmatched_responsibility_count,
            "records": [record.to_dict() for record in self.records],
            "recordCount": self.record_count,
            "recordsTruncated": self.records_truncated,
        }


def _build_offices(joined: JoinedBuckets) -> list[OfficeSummary]:
    persons_by_office: dict[str, list[PersonSummary]] = {}
    for name, buckets in joined.persons.items():
        info = joined.person_offices[name]
        persons_by_office.setdefault(info.office, []).append(
            PersonSummary(monthly=buckets, name=name, office=info.office, region=info.region)
        )

    offices: list[OfficeSummary] = []
    for office_name in sorted(persons_by_office, key=office_sort_key):
        persons = sorted(persons_by_office[office_name], key=lambda p: person_sort_key(p.office, p.name))
        offices.append(
            OfficeSummary(
                monthly=sum_buckets([person.monthly for person in persons]),
                name=office_name,
                region=region_of(office_name),
                persons=tuple(persons),
            )
        )
    return offices


def _build_regions(offices: list[OfficeSummary]) -> tuple[RegionSummary, ...]:
    offices_by_region: dict[str, list[OfficeSummary]] = {}
    for office in offices:
        offices_by_region.setdefault(office.region, []).append(office)

    regions: list[RegionSummary] = []
    for region_name in ordered_regions(offices_by_region):
        members = offices_by_region.get(region_name, [])
        regions.append(
            RegionSummary(
                monthly=sum_buckets([office.monthly for office in members]),
                name=region_name,
                offices=tuple(members),
            )
        )
    return tuple(regions)


def assemble_report(
    period: int,
    calendar: FiscalCalendar,
    aggregation: Aggregation,
    joined: JoinedBuckets,
) -> Report:
    offices = _build_offices(joined)
    return Report(
        period=period,
        date_range=calendar.period_date_range(period),
        year_months=list(aggregation.year_months),
        month_names=[calendar.month_name(idx) for idx in range(12)],
        monthly=joined.monthly,
        regions=_build_regions(offices),
        responsibility=aggregation.responsibility_items,
        judgment_tallies=aggregation.judgment_tallies,
        unmatched_responsibility_count=aggregation.unmatched_responsibility_count,
        records=aggregation.records,
        record_count=aggregation.record_count,
        records_truncated=aggregation.records_truncated,
    )

