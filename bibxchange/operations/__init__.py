"""Import and export orchestration.

- detection.py: format detection from file extensions and content
- duplicates.py: duplicate lookup against a record store
- importer.py: parse, validate, deduplicate and write records
- exporter.py: fetch, filter and serialize stored records
- results.py: statistics and result types
"""

from .detection import detect_format, sniff_format
from .duplicates import DuplicateDetector
from .exporter import ExportManager, generate_filename, save
from .importer import ImportManager, validate_reference
from .results import (
    ExportResult,
    ExportStatistics,
    ImportResult,
    ImportStatistics,
    RecordError,
)

__all__ = [
    "DuplicateDetector",
    "ExportManager",
    "ExportResult",
    "ExportStatistics",
    "ImportManager",
    "ImportResult",
    "ImportStatistics",
    "RecordError",
    "detect_format",
    "generate_filename",
    "save",
    "sniff_format",
    "validate_reference",
]
