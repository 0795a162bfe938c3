"""Record store contract and an in-memory implementation."""

from .base import RecordStore
from .memory import InMemoryRecordStore, objects_to_rows, rows_to_objects
from .models import MappedRows, RawRows, RecordStoreError, Rows, Tab

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "rows_to_objects",
    "objects_to_rows",
    "RecordStoreError",
    "Tab",
    "Rows",
    "RawRows",
    "MappedRows",
]
