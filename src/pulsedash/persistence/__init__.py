"""Persistence module for reading run reports."""

from pulsedash.persistence.loader import CURRENT_REPORT_FILE, HISTORY_DIR, ReportStore

__all__ = [
    "CURRENT_REPORT_FILE",
    "HISTORY_DIR",
    "ReportStore",
]
