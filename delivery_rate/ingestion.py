"""Record ingestion/output helpers: store-field extraction, JSON exports, Excel with Polars-first and openpyxl fallback."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Sequence

import polars as pl

from delivery_rate.domain.dates import JST
from delivery_rate.domain.models import BacklogSnapshotEntry, ChangeEvent, parse_count
from delivery_rate.domain.organization import UNASSIGNED
from delivery_rate.logger import get_logger

logger = get_logger(__name__)

# Event store column names.
FIELD_PERSON = "営業担当者"
FIELD_BEFORE_DATE = "変更前施工日"
FIELD_AFTER_DATE = "変更後施工日"
FIELD_APPLICATION_DATE = "申請日"
FIELD_STATUS = "確定or仮"
FIELD_RESPONSIBILITY = "変更責任区分"
FIELD_CHANGE_REASON = "変更理由"
FIELD_DEPARTMENT = "部門"
FIELD_ORDER_NUMBER = "受注伝票番号"
FIELD_ORDER_NAME = "売約名"
FIELD_RECORD_ID = "record_id"

# Snapshot store column names.
FIELD_SNAPSHOT_MONTH = "年月"
FIELD_SNAPSHOT_PERSON = "担当者"
FIELD_SNAPSHOT_COUNT = "受注残件数"


def extract_text_value(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        if not value:
            return ""
        first = value[0]
        if isinstance(first, dict):
            return str(first.get("text") or first.get("name") or "").strip()
        return str(first).strip()
    if isinstance(value, dict):
        return str(value.get("text") or value.get("name") or "").strip()
    return str(value)


def extract_user_name(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list) and value:
        first = value[0]
        if isinstance(first, dict):
            return str(first.get("name") or "").strip()
        if isinstance(first, str):
            return first.strip()
    if isinstance(value, dict):
        return str(value.get("name") or "").strip()
    return ""


def extract_multi_select_values(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        values: list[str] = []
        for item in value:
            if isinstance(item, dict):
                text = str(item.get("text") or item.get("name") or "").strip()
            else:
                text = str(item).strip() if item is not None else ""
            if text:
                values.append(text)
        return values
    if isinstance(value, dict):
        text = str(value.get("text") or value.get("name") or "").strip()
        return [text] if text else []
    return []


def extract_count_value(value: Any) -> int:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("value") or value.get("text") or 0
    return parse_count(value)


def _date_field(value: Any) -> Any:
    # Text date cells arrive as [{"text": ...}] segments; numbers pass through untouched.
    if isinstance(value, (list, dict)):
        return extract_text_value(value)
    return value


def change_event_from_fields(record_id: Any, fields: Dict[str, Any]) -> ChangeEvent:
    """Build a ChangeEvent from one event-store record; store timestamps are JST midnights."""
    row = {
        "record_id": "" if record_id is None else str(record_id),
        "person_name": extract_user_name(fields.get(FIELD_PERSON)),
        "before_date": _date_field(fields.get(FIELD_BEFORE_DATE)),
        "after_date": _date_field(fields.get(FIELD_AFTER_DATE)),
        "application_date": _date_field(fields.get(FIELD_APPLICATION_DATE)),
        "status": extract_text_value(fields.get(FIELD_STATUS)),
        "responsibility_raw": extract_text_value(fields.get(FIELD_RESPONSIBILITY)),
        "change_reason_raw": extract_text_value(fields.get(FIELD_CHANGE_REASON)),
        "department_tags": extract_multi_select_values(fields.get(FIELD_DEPARTMENT)),
        "order_number": extract_text_value(fields.get(FIELD_ORDER_NUMBER)),
        "order_name": extract_text_value(fields.get(FIELD_ORDER_NAME)),
    }
    return ChangeEvent.from_row(row, tz=JST)


def snapshot_from_fields(fields: Dict[str, Any]) -> BacklogSnapshotEntry:
    year_month = extract_text_value(fields.get(FIELD_SNAPSHOT_MONTH))
    return BacklogSnapshotEntry(
        fiscal_year_month=year_month.replace("/", "").replace("-", ""),
        person_name=extract_user_name(fields.get(FIELD_SNAPSHOT_PERSON)) or UNASSIGNED,
        open_order_count=extract_count_value(fields.get(FIELD_SNAPSHOT_COUNT)),
    )


def read_records_json(path: str | Path) -> list[tuple[str, Dict[str, Any]]]:
    """Read a store export: a list of {"record_id", "fields"} or {"items": [...]}; returns (record_id, fields) pairs."""
    json_path = Path(path)
    if not json_path.exists():
        raise FileNotFoundError(f"Input JSON file not found: {json_path}")
    payload = json.loads(json_path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        data = payload.get("data")
        payload = data.get("items", []) if isinstance(data, dict) else payload.get("items", [])
    if not isinstance(payload, list):
        raise ValueError(f"Unsupported record export shape in {json_path}")

    records: list[tuple[str, Dict[str, Any]]] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        fields = item.get("fields")
        if isinstance(fields, dict):
            records.append((str(item.get("record_id", "")), fields))
        else:
            records.append((str(item.get(FIELD_RECORD_ID, "")), item))
    return records


def _import_openpyxl() -> tuple[Any, Any]:
    try:
        from openpyxl import Workbook, load_workbook
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required for Excel fallback I/O.") from exc
    return Workbook, load_workbook


def _normalize_headers(raw_headers: Sequence[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for idx, value in enumerate(raw_headers):
        base = str(value).strip() if value not in (None, "") else f"column_{idx + 1}"
        count = seen.get(base, 0)
        name = base if count == 0 else f"{base}_{count + 1}"
        seen[base] = count + 1
        headers.append(name)
    return headers


def _read_with_openpyxl(path: Path) -> list[Dict[str, Any]]:
    _, load_workbook = _import_openpyxl()
    workbook = load_workbook(path, read_only=True, data_only=True)
    worksheet = workbook[workbook.sheetnames[0]]
    row_iter = worksheet.iter_rows(values_only=True)
    header_row = next(row_iter, None)
    if header_row is None:
        workbook.close()
        return []

    headers = _normalize_headers(header_row)
    rows: list[Dict[str, Any]] = []
    for values in row_iter:
        if values is None or all(value is None for value in values):
            continue
        rows.append({name: values[idx] if idx < len(values) else None for idx, name in enumerate(headers)})
    workbook.close()
    return rows


def read_records_excel(path: str | Path) -> list[tuple[str, Dict[str, Any]]]:
    """Read the first sheet of a tabular export; one row per record, headers are store field names."""
    excel_path = Path(path)
    if not excel_path.exists():
        raise FileNotFoundError(f"Input Excel file not found: {excel_path}")

    try:
        rows = pl.read_excel(excel_path).to_dicts()
    except Exception as exc:
        logger.debug("polars.read_excel failed for %s (%s); falling back to openpyxl", excel_path, exc)
        rows = _read_with_openpyxl(excel_path)

    records: list[tuple[str, Dict[str, Any]]] = []
    for idx, row in enumerate(rows, start=1):
        record_id = row.get(FIELD_RECORD_ID)
        records.append((str(record_id) if record_id not in (None, "") else f"row_{idx}", row))
    return records


def read_records(path: str | Path) -> list[tuple[str, Dict[str, Any]]]:
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return read_records_json(path)
    if suffix in {".xlsx", ".xlsm"}:
        return read_records_excel(path)
    raise ValueError(f"Unsupported record file type: {path}")


def _excel_cell_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (int, bool, str)):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return value
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return value


def _write_with_polars(path: Path, sheets: Dict[str, pl.DataFrame]) -> bool:
    if not sheets:
        return False
    try:
        from xlsxwriter import Workbook as XlsxWorkbook
    except Exception:
        return False

    try:
        with XlsxWorkbook(str(path)) as workbook:
            for sheet_name, frame in sheets.items():
                frame.write_excel(workbook=workbook, worksheet=str(sheet_name)[:31])
        return True
    except Exception as exc:
        logger.debug("polars.write_excel failed for %s (%s); falling back to openpyxl", path, exc)
        return False


def _write_with_openpyxl(path: Path, sheets: Dict[str, pl.DataFrame]) -> None:
    Workbook, _ = _import_openpyxl()
    workbook = Workbook()
    default_sheet = workbook.active
    workbook.remove(default_sheet)

    for sheet_name, frame in sheets.items():
        worksheet = workbook.create_sheet(title=str(sheet_name)[:31])
        worksheet.append(frame.columns)
        for row in frame.iter_rows(named=False):
            worksheet.append([_excel_cell_value(value) for value in row])

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)


def write_output_excel(path: str | Path, sheets: Dict[str, pl.DataFrame]) -> None:
    """Write output Excel with Polars-first and openpyxl fallback."""
    excel_path = Path(path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)

    if _write_with_polars(excel_path, sheets):
        return
    _write_with_openpyxl(excel_path, sheets)
