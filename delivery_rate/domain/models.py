"""Domain models for delivery-date-change events and backlog snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timezone, tzinfo
from typing import Any, Mapping

from delivery_rate.domain.dates import format_date, parse_date
from delivery_rate.domain.organization import UNASSIGNED
from delivery_rate.errors import SchemaValidationError


def _first_present(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _to_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    return tuple(str(item).strip() for item in value if item is not None and str(item).strip())


def parse_count(value: Any) -> int:
    """Integer count from a number or text such as "1,234" or "12.0"; unparseable values give 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(str(value).replace(",", "").strip()))
    except (TypeError, ValueError, OverflowError):
        return 0


def rate(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator


@dataclass(frozen=True)
class ChangeEvent:
    """One delivery-date-change record as delivered by the event source."""

    record_id: str
    person_name: str
    before_date: date | None
    after_date: date | None
    application_date: date | None
    status: str = ""
    responsibility_raw: str = ""
    change_reason_raw: str = ""
    department_tags: tuple[str, ...] = ()
    order_number: str = ""
    order_name: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any], tz: tzinfo = timezone.utc) -> "ChangeEvent":
        return cls(
            record_id=_to_text(_first_present(row, "record_id", "recordId")),
            person_name=_to_text(_first_present(row, "person_name", "personName")),
            before_date=parse_date(_first_present(row, "before_date", "beforeDate"), tz=tz),
            after_date=parse_date(_first_present(row, "after_date", "afterDate"), tz=tz),
            application_date=parse_date(_first_present(row, "application_date", "applicationDate"), tz=tz),
            status=_to_text(row.get("status")),
            responsibility_raw=_to_text(_first_present(row, "responsibility_raw", "responsibilityRaw")),
            change_reason_raw=_to_text(_first_present(row, "change_reason_raw", "changeReasonRaw")),
            department_tags=_to_tags(_first_present(row, "department_tags", "departmentTags")),
            order_number=_to_text(_first_present(row, "order_number", "orderNumber")),
            order_name=_to_text(_first_present(row, "order_name", "orderName")),
        )


@dataclass(frozen=True)
class ClassifiedEvent:
    event: ChangeEvent
    person_name: str
    office: str
    region: str
    days_diff: int | None
    is_counted: bool
    responsibility_category: str
    change_reason: str
    judgment1: bool | None
    judgment2: bool | None
    application_fiscal_month: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "recordId": self.event.record_id,
            "tantousha": self.person_name,
            "office": self.office,
            "region": self.region,
            "orderNumber": self.event.order_number,
            "orderName": self.event.order_name,
            "beforeDate": format_date(self.event.before_date),
            "afterDate": format_date(self.event.after_date),
            "applicationDate": format_date(self.event.application_date),
            "applicationMonth": self.application_fiscal_month or "",
            "status": self.event.status,
            "daysDiff": self.days_diff,
            "isCounted": self.is_counted,
            "responsibilityCategory": self.responsibility_category,
            "changeReason": self.change_reason,
            "judgment1": self.judgment1,
            "judgment2": self.judgment2,
        }


@dataclass(frozen=True)
class BacklogSnapshotEntry:
    fiscal_year_month: str
    person_name: str
    open_order_count: int

    def __post_init__(self) -> None:
        if self.open_order_count < 0:
            raise SchemaValidationError(
                f"open_order_count must be >= 0, got {self.open_order_count}",
                field="open_order_count",
            )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BacklogSnapshotEntry":
        year_month = _to_text(_first_present(row, "fiscal_year_month", "fiscalYearMonth", "yearMonth"))
        return cls(
            fiscal_year_month=year_month.replace("/", "").replace("-", ""),
            person_name=_to_text(_first_present(row, "person_name", "personName", "tantousha")) or UNASSIGNED,
            open_order_count=parse_count(_first_present(row, "open_order_count", "openOrderCount", "count")),
        )


@dataclass(frozen=True)
class MonthlyBucket:
    change_count: int = 0
    backlog_count: int = 0

    @property
    def change_rate(self) -> float:
        return rate(self.change_count, self.backlog_count)

    def __add__(self, other: "MonthlyBucket") -> "MonthlyBucket":
        return MonthlyBucket(
            change_count=self.change_count + other.change_count,
            backlog_count=self.backlog_count + other.backlog_count,
        )


@dataclass(frozen=True)
class ResponsibilityItem:
    category: str
    reason: str
    monthly_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.monthly_counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "reason": self.reason,
            "monthlyCounts": dict(self.monthly_counts),
            "total": self.total,
        }


@dataclass(frozen=True)
class JudgmentTally:
    category: str
    judgment1_yes: int = 0
    judgment1_no: int = 0
    judgment2_yes: int = 0
    judgment2_no: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "judgment1Yes": self.judgment1_yes,
            "judgment1No": self.judgment1_no,
            "judgment2Yes": self.judgment2_yes,
            "judgment2No": self.judgment2_no,
        }


def sum_buckets(bucket_rows: list[tuple[MonthlyBucket, ...]]) -> tuple[MonthlyBucket, ...]:
    """Month-wise sum of several twelve-slot bucket rows."""
    totals = [MonthlyBucket() for _ in range(12)]
    for row in bucket_rows:
        for idx, bucket in enumerate(row):
            totals[idx] = totals[idx] + bucket
    return tuple(totals)


@dataclass(frozen=True)
class _RollupMixin:
    monthly: tuple[MonthlyBucket, ...]

    @property
    def total_change_count(self) -> int:
        return sum(bucket.change_count for bucket in self.monthly)

    @property
    def total_backlog_count(self) -> int:
        return sum(bucket.backlog_count for bucket in self.monthly)

    @property
    def change_rate(self) -> float:
        return rate(self.total_change_count, self.total_backlog_count)


@dataclass(frozen=True)
class PersonSummary(_RollupMixin):
    name: str = ""
    office: str = ""
    region: str = ""


@dataclass(frozen=True)
class OfficeSummary(_RollupMixin):
    name: str = ""
    region: str = ""
    persons: tuple[PersonSummary, ...] = ()


@dataclass(frozen=True)
class RegionSummary(_RollupMixin):
    name: str = ""
    offices: tuple[OfficeSummary, ...] = ()
