"""Application service: normalise raw change events into classified events."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from delivery_rate.config import EngineSettings
from delivery_rate.domain.fiscal_calendar import FiscalCalendar
from delivery_rate.domain.judgment import judge_change
from delivery_rate.domain.models import ChangeEvent, ClassifiedEvent
from delivery_rate.domain.organization import UNASSIGNED, OrganizationDirectory
from delivery_rate.domain.responsibility import classify_responsibility
from delivery_rate.logger import get_logger

logger = get_logger(__name__)


def as_change_event(raw: ChangeEvent | Mapping[str, Any]) -> ChangeEvent:
    if isinstance(raw, ChangeEvent):
        return raw
    return ChangeEvent.from_row(raw)


def classify_event(
    event: ChangeEvent,
    calendar: FiscalCalendar,
    directory: OrganizationDirectory,
    settings: EngineSettings,
) -> ClassifiedEvent:
    person_name = event.person_name or UNASSIGNED
    office_info = directory.resolve(person_name, event.department_tags)
    responsibility = classify_responsibility(event.responsibility_raw, event.change_reason_raw)
    judgment = judge_change(
        event.before_date,
        event.after_date,
        event.application_date,
        materiality_days=settings.materiality_days,
        lead_time_days=settings.lead_time_days,
        magnitude_days=settings.magnitude_days,
    )
    application_month = None
    if event.application_date is not None:
        application_month = calendar.year_month_of(event.application_date)

    if judgment.days_diff is None:
        logger.debug("Record %s has no resolvable date pair; not counted", event.record_id)

    return ClassifiedEvent(
        event=event,
        person_name=person_name,
        office=office_info.office,
        region=office_info.region,
        days_diff=judgment.days_diff,
        is_counted=judgment.is_counted,
        responsibility_category=responsibility.category,
        change_reason=responsibility.reason,
        judgment1=judgment.judgment1,
        judgment2=judgment.judgment2,
        application_fiscal_month=application_month,
    )


def classify_events(
    events: Iterable[ChangeEvent | Mapping[str, Any]],
    calendar: FiscalCalendar,
    directory: OrganizationDirectory,
    settings: EngineSettings,
) -> list[ClassifiedEvent]:
    return [classify_event(as_change_event(raw), calendar, directory, settings) for raw in events]
