"""
Core services for the application.

This package contains the record synchronization facade, the assessment
wizard with its draft autosave, and the dashboard aggregation.
"""

from .autosave import DraftAutosaver
from .dashboard import CountBucket, DashboardSummary, summarize
from .sync import RecordRepository, RemoteRecordStore, export_filename, parse_records_payload
from .wizard import RecordBuilder

__all__ = [
    "CountBucket",
    "DashboardSummary",
    "DraftAutosaver",
    "RecordBuilder",
    "RecordRepository",
    "RemoteRecordStore",
    "export_filename",
    "parse_records_payload",
    "summarize",
]
