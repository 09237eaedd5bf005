"""Adapters package for report data sources."""

from .report_store import ReportStore, InMemoryReportStore
from .json_store import JsonFileReportStore

__all__ = [
    "ReportStore",
    "InMemoryReportStore",
    "JsonFileReportStore",
]
