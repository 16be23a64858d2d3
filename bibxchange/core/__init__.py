"""Canonical reference model and shared normalization rules."""

from bibxchange.core.fields import (
    BIBTEX_EXPORT_TYPES,
    BIBTEX_TYPES,
    CSL_TYPES,
    RIS_EXPORT_TYPES,
    RIS_TYPES,
    ReferenceType,
)
from bibxchange.core.keys import CitationKeyGenerator, KeyCollisionStrategy
from bibxchange.core.models import Reference
from bibxchange.core.names import (
    Person,
    authors_match,
    first_author,
    format_names,
    parse_names,
    split_names,
)
from bibxchange.core.options import ExportOptions, ImportOptions

__all__ = [
    "BIBTEX_EXPORT_TYPES",
    "BIBTEX_TYPES",
    "CSL_TYPES",
    "RIS_EXPORT_TYPES",
    "RIS_TYPES",
    "CitationKeyGenerator",
    "ExportOptions",
    "ImportOptions",
    "KeyCollisionStrategy",
    "Person",
    "Reference",
    "ReferenceType",
    "authors_match",
    "first_author",
    "format_names",
    "parse_names",
    "split_names",
]
