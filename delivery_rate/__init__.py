"""Delivery-date change rate engine."""

from .application import classify_events, compute_report, run_reporting_pipeline
from .application.reporting.assembler import Report
from .config import EngineSettings
from .ingestion import read_records, write_output_excel

__all__ = [
    "EngineSettings",
    "Report",
    "classify_events",
    "compute_report",
    "run_reporting_pipeline",
    "read_records",
    "write_output_excel",
]
