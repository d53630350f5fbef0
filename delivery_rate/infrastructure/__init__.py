"""Infrastructure layer package."""

from .record_repository import ReportInputs, fetch_report_inputs, load_backlog_snapshots, load_change_events
from .report_exporter import save_report_json, save_report_workbook

__all__ = [
    "ReportInputs",
    "fetch_report_inputs",
    "load_backlog_snapshots",
    "load_change_events",
    "save_report_json",
    "save_report_workbook",
]
