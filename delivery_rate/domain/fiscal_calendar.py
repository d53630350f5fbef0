"""Fiscal calendar: period (期) and fiscal-month arithmetic for a non-January year start."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

FISCAL_START_MONTH = 8
PERIOD_OFFSET = 1975


@dataclass(frozen=True)
class FiscalCalendar:
    """Single source of truth for mapping calendar dates onto fiscal buckets."""

    start_month: int = FISCAL_START_MONTH
    period_offset: int = PERIOD_OFFSET

    def __post_init__(self) -> None:
        if not 2 <= self.start_month <= 12:
            raise ValueError(f"start_month must be in [2, 12], got {self.start_month}")

    def fiscal_year_of(self, value: date) -> int:
        if value.month >= self.start_month:
            return value.year - self.period_offset
        return value.year - self.period_offset - 1

    def fiscal_month_index(self, value: date) -> int:
        return (value.month - self.start_month) % 12

    def calendar_month(self, month_index: int) -> int:
        return (self.start_month - 1 + month_index) % 12 + 1

    def month_name(self, month_index: int) -> str:
        return f"{self.calendar_month(month_index)}月"

    def fiscal_year_months(self, period: int) -> list[str]:
        start_year = period + self.period_offset
        months: list[str] = []
        for idx in range(12):
            month = self.calendar_month(idx)
            year = start_year if month >= self.start_month else start_year + 1
            months.append(f"{year}{month:02d}")
        return months

    @staticmethod
    def year_month_of(value: date) -> str:
        return f"{value.year}{value.month:02d}"

    def period_date_range(self, period: int) -> tuple[date, date]:
        start = date(period + self.period_offset, self.start_month, 1)
        end = date(start.year + 1, self.start_month, 1) - timedelta(days=1)
        return start, end

    def current_period(self, today: date | None = None) -> int:
        return self.fiscal_year_of(today or date.today())


DEFAULT_CALENDAR = FiscalCalendar()
