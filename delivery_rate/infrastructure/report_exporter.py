"""Infrastructure adapter for report export targets."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import polars as pl

from delivery_rate.ingestion import write_output_excel

RATE_DIGITS = 4


def save_report_json(path: Path, report: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")


def _monthly_frame(report: Any) -> pl.DataFrame:
    return pl.DataFrame(
        [
            {
                "month": row["month"],
                "year_month": row["yearMonth"],
                "change_count": row["changeCount"],
                "backlog_count": row["backlogCount"],
                "change_rate": round(row["changeRate"], RATE_DIGITS),
            }
            for row in report.monthly_rows(report.monthly)
        ],
        schema={
            "month": pl.Utf8,
            "year_month": pl.Utf8,
            "change_count": pl.Int64,
            "backlog_count": pl.Int64,
            "change_rate": pl.Float64,
        },
    )


def _rollup_frame(rows: list[dict[str, Any]], label_columns: list[str], year_months: list[str]) -> pl.DataFrame:
    # One row per entity; per-month change counts spread across columns.
    schema: dict[str, Any] = {column: pl.Utf8 for column in label_columns}
    schema.update({"total_change_count": pl.Int64, "total_backlog_count": pl.Int64, "change_rate": pl.Float64})
    schema.update({f"changes_{ym}": pl.Int64 for ym in year_months})
    return pl.DataFrame(rows, schema=schema)


def _rollup_row(summary: Any, labels: dict[str, str]) -> dict[str, Any]:
    row: dict[str, Any] = dict(labels)
    row["total_change_count"] = summary.total_change_count
    row["total_backlog_count"] = summary.total_backlog_count
    row["change_rate"] = round(summary.change_rate, RATE_DIGITS)
    return row


def _with_monthly_changes(row: dict[str, Any], summary: Any, year_months: list[str]) -> dict[str, Any]:
    for ym, bucket in zip(year_months, summary.monthly):
        row[f"changes_{ym}"] = bucket.change_count
    return row


def build_report_sheets(report: Any) -> dict[str, pl.DataFrame]:
    year_months = list(report.year_months)
    persons = [
        _with_monthly_changes(
            _rollup_row(person, {"person": person.name, "office": person.office, "region": person.region}),
            person,
            year_months,
        )
        for person in report.persons
    ]
    offices = [
        _with_monthly_changes(_rollup_row(office, {"office": office.name, "region": office.region}), office, year_months)
        for office in report.offices
    ]
    regions = [
        _with_monthly_changes(_rollup_row(region, {"region": region.name}), region, year_months)
        for region in report.regions
    ]

    responsibility_rows = []
    for item in report.responsibility:
        row: dict[str, Any] = {"category": item.category, "reason": item.reason, "total": item.total}
        row.update({f"changes_{ym}": item.monthly_counts.get(ym, 0) for ym in year_months})
        responsibility_rows.append(row)
    responsibility_schema: dict[str, Any] = {"category": pl.Utf8, "reason": pl.Utf8, "total": pl.Int64}
    responsibility_schema.update({f"changes_{ym}": pl.Int64 for ym in year_months})

    judgment_schema = {
        "category": pl.Utf8,
        "judgment1Yes": pl.Int64,
        "judgment1No": pl.Int64,
        "judgment2Yes": pl.Int64,
        "judgment2No": pl.Int64,
    }
    record_schema = {
        "recordId": pl.Utf8,
        "tantousha": pl.Utf8,
        "office": pl.Utf8,
        "region": pl.Utf8,
        "orderNumber": pl.Utf8,
        "orderName": pl.Utf8,
        "beforeDate": pl.Utf8,
        "afterDate": pl.Utf8,
        "applicationDate": pl.Utf8,
        "applicationMonth": pl.Utf8,
        "status": pl.Utf8,
        "daysDiff": pl.Int64,
        "isCounted": pl.Boolean,
        "responsibilityCategory": pl.Utf8,
        "changeReason": pl.Utf8,
        "judgment1": pl.Boolean,
        "judgment2": pl.Boolean,
    }

    return {
        "monthly": _monthly_frame(report),
        "persons": _rollup_frame(persons, ["person", "office", "region"], year_months),
        "offices": _rollup_frame(offices, ["office", "region"], year_months),
        "regions": _rollup_frame(regions, ["region"], year_months),
        "responsibility": pl.DataFrame(responsibility_rows, schema=responsibility_schema),
        "judgment": pl.DataFrame([tally.to_dict() for tally in report.judgment_tallies], schema=judgment_schema),
        "records": pl.DataFrame([record.to_dict() for record in report.records], schema=record_schema),
    }


def save_report_workbook(path: Path, report: Any) -> tuple[bool, str]:
    try:
        write_output_excel(path, build_report_sheets(report))
    except PermissionError as exc:
        return False, str(exc)
    return True, ""
