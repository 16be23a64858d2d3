"""Result types for import and export runs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bibxchange.core.options import ExportOptions, ImportOptions
from bibxchange.formats.base import Format
from bibxchange.store.base import RecordId


@dataclass
class RecordError:
    """A failure affecting a single record."""

    identifier: Any
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"identifier": self.identifier, "error": self.error}


@dataclass
class ImportStatistics:
    """Counters for one import run."""

    total_processed: int = 0
    successful: int = 0
    updated: int = 0
    failed: int = 0
    duplicates_found: int = 0
    errors: list[RecordError] = field(default_factory=list)

    def add_error(self, identifier: Any, error: str) -> None:
        """Count a failed record."""
        self.failed += 1
        self.errors.append(RecordError(identifier, error))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "total_processed": self.total_processed,
            "successful": self.successful,
            "updated": self.updated,
            "failed": self.failed,
            "duplicates_found": self.duplicates_found,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class ImportResult:
    """Result of an import run."""

    format: Format
    options: ImportOptions
    statistics: ImportStatistics = field(default_factory=ImportStatistics)
    imported_ids: list[RecordId] = field(default_factory=list)
    updated_ids: list[RecordId] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if every record was processed without error."""
        return self.statistics.failed == 0 and self.statistics.total_processed > 0

    @property
    def partial_success(self) -> bool:
        """Check if some records were written despite failures."""
        written = len(self.imported_ids) + len(self.updated_ids)
        return written > 0 and self.statistics.failed > 0

    def summary(self) -> str:
        """Get summary of import results."""
        stats = self.statistics
        lines = [
            f"Format: {self.format.label}",
            f"Processed: {stats.total_processed}",
            f"Imported: {stats.successful}",
        ]

        if stats.updated:
            lines.append(f"Updated: {stats.updated}")
        if stats.duplicates_found:
            lines.append(f"Duplicates: {stats.duplicates_found}")
        if stats.failed:
            lines.append(f"Failed: {stats.failed}")

        if stats.errors:
            lines.append("\nErrors:")
            for error in stats.errors[:5]:
                lines.append(f"  {error.identifier}: {error.error}")
            if len(stats.errors) > 5:
                lines.append(f"  ... and {len(stats.errors) - 5} more")

        return "\n".join(lines)


@dataclass
class ExportStatistics:
    """Counters for one export run."""

    total_processed: int = 0
    successful: int = 0
    failed: int = 0
    cited: int = 0
    errors: list[RecordError] = field(default_factory=list)

    def add_error(self, identifier: Any, error: str) -> None:
        """Count a record that could not be exported."""
        self.failed += 1
        self.errors.append(RecordError(identifier, error))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_processed": self.total_processed,
            "successful": self.successful,
            "failed": self.failed,
            "cited": self.cited,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class ExportResult:
    """A serialized payload together with its download metadata."""

    content: str
    filename: str
    mime_type: str
    format: Format
    statistics: ExportStatistics
    options: ExportOptions
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        return self.statistics.failed == 0
