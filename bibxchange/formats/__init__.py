"""Bibliographic interchange formats.

Each format has one handler that parses, serializes and validates content:

- **RIS**: Research Information Systems tag format
- **BibTeX**: LaTeX bibliography entries with string macros and escapes
- **CSV**: spreadsheet rows with an aliased header row
- **JSON**: CSL-JSON items and plain reference maps
"""

from collections.abc import Sequence

from bibxchange.core.models import Reference
from bibxchange.core.options import ExportOptions

from .base import Format, FormatHandler
from .bibtex import BibtexFormat
from .csl import CslJsonFormat
from .csv import CsvFormat
from .ris import RisFormat

_HANDLERS: dict[Format, type[FormatHandler]] = {
    Format.RIS: RisFormat,
    Format.BIBTEX: BibtexFormat,
    Format.CSV: CsvFormat,
    Format.JSON: CslJsonFormat,
}


def get_handler(format: Format | str) -> FormatHandler:
    """Return a fresh handler for a format.

    Raises:
        UnsupportedFormatError: If the format is unknown.
    """
    return _HANDLERS[Format.from_value(format)]()


def supported_formats() -> dict[str, dict[str, str]]:
    """Describe every supported format."""
    return {
        fmt.value: {
            "name": fmt.label,
            "extension": fmt.extension,
            "mime_type": fmt.mime_type,
        }
        for fmt in Format
    }


def parse(content: str, format: Format | str) -> list[Reference]:
    """Parse content in the given format."""
    return get_handler(format).parse(content)


def export(
    references: Sequence[Reference],
    format: Format | str,
    options: ExportOptions | None = None,
) -> str:
    """Serialize references to the given format."""
    return get_handler(format).export(references, options)


def convert(
    content: str,
    source: Format | str,
    target: Format | str,
    options: ExportOptions | None = None,
) -> str:
    """Parse content in one format and serialize it in another."""
    return export(parse(content, source), target, options)


__all__ = [
    "BibtexFormat",
    "CslJsonFormat",
    "CsvFormat",
    "Format",
    "FormatHandler",
    "RisFormat",
    "convert",
    "export",
    "get_handler",
    "parse",
    "supported_formats",
]
