"""Staledirs data models."""

from staledirs.models.entry import Diagnostic, EntryKind, FileSystemEntry
from staledirs.models.records import AggregateRecord, ClassifyResult, DirInfo, ReportRow, StaleVerdict

__all__ = [
    "AggregateRecord",
    "ClassifyResult",
    "Diagnostic",
    "DirInfo",
    "EntryKind",
    "FileSystemEntry",
    "ReportRow",
    "StaleVerdict",
]
