"""Change judgment rules: materiality (counted) and the two quality flags."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from delivery_rate.domain.dates import days_between

MATERIALITY_DAYS = 7
LEAD_TIME_DAYS = 30
MAGNITUDE_DAYS = 7


@dataclass(frozen=True)
class ChangeJudgment:
    days_diff: int | None
    is_counted: bool
    lead_days: int | None
    judgment1: bool | None
    judgment2: bool | None


def is_material_change(days_diff: int | None, materiality_days: int = MATERIALITY_DAYS) -> bool:
    return days_diff is not None and abs(days_diff) > materiality_days


def judge_lead_time(lead_days: int | None, lead_time_days: int = LEAD_TIME_DAYS) -> bool | None:
    if lead_days is None:
        return None
    return lead_days <= lead_time_days


def judge_magnitude(
    judgment1: bool | None,
    days_diff: int | None,
    magnitude_days: int = MAGNITUDE_DAYS,
) -> bool | None:
    """Second gate: only evaluated once the lead-time judgment has passed."""
    if judgment1 is None:
        return None
    if judgment1 is False:
        return False
    if days_diff is None:
        return None
    return abs(days_diff) >= magnitude_days


def judge_change(
    before_date: date | None,
    after_date: date | None,
    application_date: date | None,
    materiality_days: int = MATERIALITY_DAYS,
    lead_time_days: int = LEAD_TIME_DAYS,
    magnitude_days: int = MAGNITUDE_DAYS,
) -> ChangeJudgment:
    days_diff = days_between(before_date, after_date)
    lead_days = days_between(application_date, before_date)
    judgment1 = judge_lead_time(lead_days, lead_time_days)
    return ChangeJudgment(
        days_diff=days_diff,
        is_counted=is_material_change(days_diff, materiality_days),
        lead_days=lead_days,
        judgment1=judgment1,
        judgment2=judge_magnitude(judgment1, days_diff, magnitude_days),
    )
