"""Format enumeration and the handler interface shared by all formats."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum

from bibxchange.core.models import Reference
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import UnsupportedFormatError


class Format(Enum):
    """Supported interchange formats."""

    RIS = "ris"
    BIBTEX = "bibtex"
    CSV = "csv"
    JSON = "json"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_value(cls, value: "Format | str | None") -> "Format":
        """Resolve a format name or alias.

        Raises:
            UnsupportedFormatError: If the value names no known format.
        """
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower().lstrip(".")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedFormatError(str(value) if value else None) from None


_MIME_TYPES = {
    Format.RIS: "application/x-research-info-systems",
    Format.BIBTEX: "application/x-bibtex",
    Format.CSV: "text/csv",
    Format.JSON: "application/json",
}

_EXTENSIONS = {
    Format.RIS: "ris",
    Format.BIBTEX: "bib",
    Format.CSV: "csv",
    Format.JSON: "json",
}

_LABELS = {
    Format.RIS: "RIS (Research Information Systems)",
    Format.BIBTEX: "BibTeX",
    Format.CSV: "CSV (Comma Separated Values)",
    Format.JSON: "CSL-JSON",
}

_ALIASES = {"bib": "bibtex", "csl": "json", "csl-json": "json"}


class FormatHandler(ABC):
    """Parser and serializer for one interchange format."""

    format: Format

    @abstractmethod
    def parse(self, content: str) -> list[Reference]:
        """Parse content into canonical references."""

    @abstractmethod
    def export(
        self, references: Sequence[Reference], options: ExportOptions | None = None
    ) -> str:
        """Serialize references to this format."""

    @abstractmethod
    def validate(self, content: str) -> None:
        """Check the structural markers of the format.

        Raises:
            InterchangeError: Describing the first structural problem found.
        """

    @abstractmethod
    def count(self, content: str) -> int:
        """Count the records in content without fully parsing it."""

    def template(self, reference_type: str | None = None) -> str:
        """Return an empty skeleton record for this format and type."""
        return ""
