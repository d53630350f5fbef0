"""Domain layer package."""

from .dates import JST, parse_date
from .fiscal_calendar import DEFAULT_CALENDAR, FiscalCalendar
from .judgment import ChangeJudgment, judge_change
from .models import BacklogSnapshotEntry, ChangeEvent, ClassifiedEvent, MonthlyBucket
from .organization import DEFAULT_DIRECTORY, OfficeInfo, OrganizationDirectory
from .responsibility import Responsibility, classify_responsibility

__all__ = [
    "JST",
    "parse_date",
    "FiscalCalendar",
    "DEFAULT_CALENDAR",
    "ChangeJudgment",
    "judge_change",
    "ChangeEvent",
    "ClassifiedEvent",
    "BacklogSnapshotEntry",
    "MonthlyBucket",
    "OfficeInfo",
    "OrganizationDirectory",
    "DEFAULT_DIRECTORY",
    "Responsibility",
    "classify_responsibility",
]
