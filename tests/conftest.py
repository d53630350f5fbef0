import pytest

from delivery_rate.config import EngineSettings


def make_event(
    record_id: str,
    person: str,
    before: str | None,
    after: str | None,
    application: str | None,
    responsibility: str = "施主要望",
    reason: str = "",
    tags: tuple[str, ...] = (),
) -> dict:
    return {
        "record_id": record_id,
        "person_name": person,
        "before_date": before,
        "after_date": after,
        "application_date": application,
        "responsibility_raw": responsibility,
        "change_reason_raw": reason,
        "department_tags": list(tags),
    }


def make_snapshot(year_month: str, person: str, count: int) -> dict:
    return {"fiscal_year_month": year_month, "person_name": person, "open_order_count": count}


@pytest.fixture
def settings(tmp_path):
    return EngineSettings(output_dir=tmp_path / "output")
