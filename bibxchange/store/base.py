"""Record store contract used by the import and export orchestrators."""

from abc import ABC, abstractmethod
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any

from bibxchange.core.models import Reference

RecordId = Hashable


@dataclass(frozen=True)
class StoredRecord:
    """A reference held by a record store, with the store's identifier."""

    id: RecordId
    reference: Reference


class RecordStore(ABC):
    """Abstract base class for record stores.

    Persistence is owned by the host application. The interchange layer
    only needs these lookups and mutations.
    """

    @abstractmethod
    def find_by_doi(self, doi: str) -> StoredRecord | None:
        """Find the record with exactly this DOI."""
        pass

    @abstractmethod
    def find_by_title(self, title: str) -> list[StoredRecord]:
        """Find records with this title."""
        pass

    @abstractmethod
    def create(self, fields: dict[str, Any]) -> RecordId:
        """Create a record from a field mapping and return its identifier."""
        pass

    @abstractmethod
    def update(self, record_id: RecordId, fields: dict[str, Any]) -> None:
        """Merge a field mapping into an existing record."""
        pass

    @abstractmethod
    def get_usage_count(self, record_id: RecordId) -> int:
        """Number of documents citing the record."""
        pass

    @abstractmethod
    def get(self, record_id: RecordId) -> StoredRecord | None:
        """Fetch a record by identifier."""
        pass
