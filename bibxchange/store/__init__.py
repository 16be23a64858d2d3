"""Record store contract and the in-memory implementation."""

from .base import RecordId, RecordStore, StoredRecord
from .memory import MemoryRecordStore

__all__ = ["MemoryRecordStore", "RecordId", "RecordStore", "StoredRecord"]
