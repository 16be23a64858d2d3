"""Options for import and export runs."""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, TypeVar

T = TypeVar("T")


def _from_mapping(cls: type[T], data: Mapping[str, Any] | None) -> T:
    if not data:
        return cls()
    known = {f.name for f in fields(cls)}
    values = {key.replace("-", "_"): value for key, value in data.items()}
    return cls(**{k: v for k, v in values.items() if k in known})


@dataclass
class ImportOptions:
    """Options controlling an import run."""

    check_duplicates: bool = True
    update_existing: bool = False
    batch_size: int = 50
    validate_data: bool = True

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ImportOptions":
        """Build options from a config mapping, ignoring unknown keys."""
        return _from_mapping(cls, data)


@dataclass
class ExportOptions:
    """Options controlling an export run."""

    include_abstracts: bool = True
    include_keywords: bool = True
    include_urls: bool = True
    include_header: bool = True
    filename: str | None = None
    batch_size: int = 100
    ris_line_length: int = 255
    csv_abstract_length: int = 500
    csv_delimiter: str = ","
    json_indent: int | None = 2
    exported_by: str | None = None

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.ris_line_length < 10:
            raise ValueError("ris_line_length must be at least 10")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ExportOptions":
        """Build options from a config mapping, ignoring unknown keys."""
        return _from_mapping(cls, data)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
