"""In-memory record store for tests and the command line tools."""

import itertools
import threading
from collections import defaultdict
from copy import deepcopy
from typing import Any

from bibxchange.core.models import Reference
from bibxchange.core.normalize import clean_doi
from bibxchange.exceptions import RecordNotFoundError

from .base import RecordId, RecordStore, StoredRecord


def title_key(title: str | None) -> str:
    """Comparison key for exact title lookups."""
    return " ".join((title or "").split()).casefold()


def doi_key(doi: str | None) -> str:
    """Comparison key for DOI lookups."""
    return (clean_doi(doi) or "").casefold()


class MemoryRecordStore(RecordStore):
    """Record store keeping field mappings in a dictionary.

    Identifiers are consecutive integers starting at 1. DOI and title
    lookups use indexes kept in step with every create and update. All
    access goes through a lock, so one store may be shared between threads.
    """

    def __init__(self):
        self._data: dict[int, dict[str, Any]] = {}
        self._by_doi: dict[str, set[int]] = defaultdict(set)
        self._by_title: dict[str, set[int]] = defaultdict(set)
        self._usage: dict[int, int] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def _record(self, record_id: int) -> StoredRecord:
        reference = Reference.from_dict(deepcopy(self._data[record_id]))
        return StoredRecord(record_id, reference)

    def _index(self, record_id: int) -> None:
        fields = self._data[record_id]
        if doi := doi_key(fields.get("doi")):
            self._by_doi[doi].add(record_id)
        if title := title_key(fields.get("title")):
            self._by_title[title].add(record_id)

    def _unindex(self, record_id: int) -> None:
        fields = self._data[record_id]
        self._by_doi.get(doi_key(fields.get("doi")), set()).discard(record_id)
        self._by_title.get(title_key(fields.get("title")), set()).discard(record_id)

    def find_by_doi(self, doi: str) -> StoredRecord | None:
        wanted = doi_key(doi)
        if not wanted:
            return None
        with self._lock:
            ids = self._by_doi.get(wanted)
            return self._record(min(ids)) if ids else None

    def find_by_title(self, title: str) -> list[StoredRecord]:
        wanted = title_key(title)
        if not wanted:
            return []
        with self._lock:
            ids = self._by_title.get(wanted, set())
            return [self._record(record_id) for record_id in sorted(ids)]

    def create(self, fields: dict[str, Any]) -> int:
        with self._lock:
            record_id = next(self._ids)
            self._data[record_id] = deepcopy(fields)
            self._index(record_id)
            return record_id

    def update(self, record_id: RecordId, fields: dict[str, Any]) -> None:
        with self._lock:
            if record_id not in self._data:
                raise RecordNotFoundError(record_id)
            self._unindex(record_id)
            current = self._data[record_id]
            for key, value in deepcopy(fields).items():
                if key == "extras" and isinstance(current.get("extras"), dict):
                    current["extras"] = {**current["extras"], **value}
                elif value not in (None, ""):
                    current[key] = value
            self._index(record_id)

    def get(self, record_id: RecordId) -> StoredRecord | None:
        with self._lock:
            if record_id not in self._data:
                return None
            return self._record(record_id)

    def get_usage_count(self, record_id: RecordId) -> int:
        with self._lock:
            return self._usage.get(record_id, 0)

    def set_usage_count(self, record_id: RecordId, count: int) -> None:
        """Record how many documents cite a record."""
        with self._lock:
            if record_id not in self._data:
                raise RecordNotFoundError(record_id)
            self._usage[record_id] = count

    def all(self) -> list[StoredRecord]:
        """All records in creation order."""
        with self._lock:
            return [self._record(record_id) for record_id in self._data]

    def __len__(self) -> int:
        return len(self._data)
