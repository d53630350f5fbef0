"""Tests for record loading, concurrent fetch and report export."""

import asyncio
import json
from datetime import date
from functools import partial

import pytest
from conftest import make_event
from openpyxl import Workbook, load_workbook

from delivery_rate.application import compute_report
from delivery_rate.errors import DataFetchError
from delivery_rate.infrastructure.record_repository import (
    ReportInputs,
    fetch_report_inputs,
    load_backlog_snapshots,
    load_change_events,
)
from delivery_rate.infrastructure.report_exporter import save_report_json, save_report_workbook

# 2025-01-10T00:00:00+09:00
JAN_10_JST_MS = 1736434800000


def _write_json(path, payload):
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


class TestLoadChangeEvents:
    def test_store_export(self, tmp_path):
        path = _write_json(
            tmp_path / "events.json",
            {
                "items": [
                    {
                        "record_id": "rec1",
                        "fields": {
                            "営業担当者": [{"id": "ou_1", "name": "北原 裕二"}],
                            "変更前施工日": JAN_10_JST_MS,
                            "変更後施工日": "2025/01/25",
                            "申請日": [{"text": "2024/12/20", "type": "text"}],
                            "変更責任区分": "施主要望",
                            "部門": ["福岡営業所"],
                            "受注伝票番号": [{"text": "SO-001"}],
                        },
                    }
                ]
            },
        )
        events = load_change_events(path)
        assert len(events) == 1
        event = events[0]
        assert event.record_id == "rec1"
        assert event.person_name == "北原 裕二"
        assert event.before_date == date(2025, 1, 10)
        assert event.after_date == date(2025, 1, 25)
        assert event.application_date == date(2024, 12, 20)
        assert event.department_tags == ("福岡営業所",)
        assert event.order_number == "SO-001"

    def test_excel_export(self, tmp_path):
        path = tmp_path / "events.xlsx"
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(["record_id", "営業担当者", "変更前施工日", "変更後施工日", "申請日", "変更責任区分"])
        sheet.append(["rec9", "小野克也", "2024/11/01", "2024/10/01", "2024/10/20", "設計対応"])
        workbook.save(path)

        events = load_change_events(path)
        assert [event.record_id for event in events] == ["rec9"]
        assert events[0].person_name == "小野克也"
        assert events[0].before_date == date(2024, 11, 1)

    def test_missing_source_fails(self, tmp_path):
        with pytest.raises(DataFetchError):
            load_change_events(tmp_path / "missing.json")

    def test_unsupported_type_fails(self, tmp_path):
        path = tmp_path / "events.csv"
        path.write_text("a,b\n", encoding="utf-8")
        with pytest.raises(DataFetchError):
            load_change_events(path)


class TestLoadBacklogSnapshots:
    def test_store_export(self, tmp_path):
        path = _write_json(
            tmp_path / "snapshots.json",
            [{"record_id": "s1", "fields": {"年月": "2024/12", "担当者": [{"name": "北原裕二"}], "受注残件数": 12}}],
        )
        snapshots = load_backlog_snapshots(path)
        assert len(snapshots) == 1
        assert snapshots[0].fiscal_year_month == "202412"
        assert snapshots[0].person_name == "北原裕二"
        assert snapshots[0].open_order_count == 12

    def test_unconfigured_or_missing(self, tmp_path):
        assert load_backlog_snapshots(None) == []
        assert load_backlog_snapshots(tmp_path / "missing.json") == []

    def test_negative_count_row_is_skipped(self, tmp_path):
        path = _write_json(
            tmp_path / "snapshots.json",
            [
                {"record_id": "s1", "fields": {"年月": "2024/12", "担当者": [{"name": "北原裕二"}], "受注残件数": 10}},
                {"record_id": "s2", "fields": {"年月": "2024/12", "担当者": [{"name": "小野克也"}], "受注残件数": -1}},
            ],
        )
        snapshots = load_backlog_snapshots(path)
        assert [(entry.person_name, entry.open_order_count) for entry in snapshots] == [("北原裕二", 10)]

    def test_thousands_separator_count(self, tmp_path):
        path = _write_json(
            tmp_path / "snapshots.json",
            [{"record_id": "s1", "fields": {"年月": "2024-12", "担当者": "北原裕二", "受注残件数": "1,234"}}],
        )
        assert load_backlog_snapshots(path)[0].open_order_count == 1234

    def test_corrupt_workbook_fails_to_read(self, tmp_path):
        path = tmp_path / "snapshots.xlsx"
        path.write_bytes(b"not a zip file")
        with pytest.raises(DataFetchError):
            load_backlog_snapshots(path)

    def test_corrupt_workbook_degrades_to_no_snapshots(self, tmp_path):
        path = tmp_path / "snapshots.xlsx"
        path.write_bytes(b"not a zip file")
        inputs = asyncio.run(fetch_report_inputs(lambda: ["e"], partial(load_backlog_snapshots, path)))
        assert inputs.events == ["e"]
        assert inputs.snapshots == []


class TestFetchReportInputs:
    def test_both_sources(self):
        inputs = asyncio.run(fetch_report_inputs(lambda: ["e"], lambda: ["s"]))
        assert inputs == ReportInputs(events=["e"], snapshots=["s"])

    def test_no_snapshot_loader(self):
        inputs = asyncio.run(fetch_report_inputs(lambda: ["e"]))
        assert inputs.snapshots == []

    def test_snapshot_failure_degrades_to_empty(self):
        def broken():
            raise DataFetchError("store unreachable", source="snapshots")

        inputs = asyncio.run(fetch_report_inputs(lambda: ["e"], broken))
        assert inputs.events == ["e"]
        assert inputs.snapshots == []

    def test_event_failure_is_fatal(self):
        def broken():
            raise OSError("store unreachable")

        with pytest.raises(DataFetchError):
            asyncio.run(fetch_report_inputs(broken, lambda: ["s"]))


class TestReportExport:
    @pytest.fixture
    def report(self, settings):
        events = [
            make_event("r1", "北原裕二", "2025-01-10", "2025-01-25", "2024-12-20"),
            make_event("r2", "郷田哲雄", "2025-03-01", "2025-04-01", "2025-02-27", responsibility="確定"),
        ]
        return compute_report(49, events, [], settings=settings)

    def test_json(self, tmp_path, report):
        path = tmp_path / "out" / "report.json"
        save_report_json(path, report)
        text = path.read_text(encoding="utf-8")
        assert "福岡営業所" in text
        assert json.loads(text)["totalChangeCount"] == 2

    def test_workbook(self, tmp_path, report):
        path = tmp_path / "out" / "report.xlsx"
        saved, message = save_report_workbook(path, report)
        assert saved is True
        assert message == ""
        workbook = load_workbook(path, read_only=True)
        assert workbook.sheetnames == [
            "monthly",
            "persons",
            "offices",
            "regions",
            "responsibility",
            "judgment",
            "records",
        ]
        workbook.close()
