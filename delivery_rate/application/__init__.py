"""Application layer package."""

from .classification_service import classify_events
from .report_service import compute_report, run_reporting_pipeline

__all__ = ["classify_events", "compute_report", "run_reporting_pipeline"]
