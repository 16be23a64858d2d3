"""JSON import and CSL-JSON export.

Import accepts CSL-JSON items as well as plain canonical field maps, wrapped
in ``{"items": [...]}``, ``{"references": [...]}`` or ``{"entries": [...]}``,
as a bare list, or as a single object. Export always writes CSL items inside
an ``export_info`` envelope.
"""

import json
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

import msgspec

from bibxchange import __version__
from bibxchange.core.fields import CSL_IMPORT_TYPES, CSL_TYPES, ReferenceType
from bibxchange.core.models import Reference
from bibxchange.core.normalize import (
    clean_doi,
    clean_isbn,
    extract_year,
    is_valid_date,
    normalize_pages,
)
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import (
    EmptyContentError,
    InvalidFormatError,
    NoReferencesFoundError,
    ParseError,
)

from .base import Format, FormatHandler

CONTAINER_KEYS = ("items", "references", "entries")

# CSL variable -> canonical field, for variables that only differ in name.
CSL_FIELDS = {
    "title": "title",
    "publisher": "publisher",
    "publisher-place": "location",
    "volume": "volume",
    "issue": "issue",
    "DOI": "doi",
    "PMID": "pmid",
    "ISBN": "isbn",
    "ISSN": "issn",
    "URL": "url",
    "abstract": "abstract",
    "keyword": "keywords",
    "language": "language",
    "edition": "edition",
    "note": "notes",
    "citation-key": "citation_key",
}

SERIAL_TYPES = {ReferenceType.JOURNAL, ReferenceType.MAGAZINE, ReferenceType.NEWSPAPER}


def _csl_type(value: Any) -> tuple[ReferenceType, str | None]:
    """Canonical type for a CSL or canonical type label, plus the unmapped label."""
    if not value:
        return ReferenceType.OTHER, None
    label = str(value).strip()
    if label in CSL_IMPORT_TYPES:
        return CSL_IMPORT_TYPES[label], None
    ref_type = ReferenceType.coerce(label)
    if ref_type is ReferenceType.OTHER and label.lower() != "other":
        return ref_type, label
    return ref_type, None


def _issued_year(issued: Any) -> int | None:
    if not is_valid_date(issued):
        return None
    if isinstance(issued, Mapping):
        parts = issued.get("date-parts")
        if parts:
            return int(parts[0][0])
        return extract_year(issued.get("raw") or issued.get("literal"))
    return extract_year(issued)


def from_csl(item: Mapping[str, Any]) -> Reference:
    """Convert a CSL-JSON item (or a canonical field map) into a Reference."""
    data: dict[str, Any] = {}
    extras: dict[str, Any] = {}

    for key, value in item.items():
        if value in (None, "", [], {}):
            continue
        if key in CSL_FIELDS:
            data[CSL_FIELDS[key]] = value
        elif key in ("container-title", "container_title"):
            data["container"] = value
        elif key == "page":
            data["pages"] = value
        elif key == "number":
            data.setdefault("issue", value)
        elif key == "issued":
            data["issued"] = value
        elif key == "type":
            continue
        else:
            data[key] = value

    ref_type, unmapped = _csl_type(item.get("type"))
    if unmapped:
        extras["csl_type"] = unmapped

    issued = data.pop("issued", None)
    if issued is not None and "year" not in data:
        year = _issued_year(issued)
        if year is None:
            extras["date"] = issued
        else:
            data["year"] = year

    container = data.pop("container", None)
    if container:
        if ref_type in SERIAL_TYPES:
            data.setdefault("journal", container)
        else:
            data.setdefault("publication", container)

    if "pages" in data:
        data["pages"] = normalize_pages(data["pages"])
    if "doi" in data:
        data["doi"] = clean_doi(data["doi"])
    if "isbn" in data:
        data["isbn"] = clean_isbn(data["isbn"])

    if extras:
        data["extras"] = {**extras, **(data.get("extras") or {})}
    data["type"] = ref_type
    return Reference.from_dict(data)


def to_csl(reference: Reference, index: int, options: ExportOptions) -> dict[str, Any]:
    """Map a Reference onto a CSL-JSON item."""
    ref_id = reference.extra("id")
    item: dict[str, Any] = {
        "id": f"ref_{ref_id if ref_id is not None else index}",
        "type": CSL_TYPES[reference.type],
        "title": reference.title,
        "citation-key": reference.citation_key,
    }

    for field, people in (("author", reference.authors), ("editor", reference.editors)):
        if people:
            item[field] = [msgspec.to_builtins(person) for person in people]

    if reference.year:
        item["issued"] = {"date-parts": [[reference.year]]}

    item["container-title"] = reference.container
    item["publisher"] = reference.publisher
    item["publisher-place"] = reference.location
    item["volume"] = reference.volume
    item["issue"] = reference.issue
    item["page"] = reference.pages
    item["DOI"] = reference.doi
    item["PMID"] = reference.pmid
    item["ISBN"] = reference.isbn
    item["ISSN"] = reference.issn
    if options.include_urls:
        item["URL"] = reference.url
    if options.include_abstracts:
        item["abstract"] = reference.abstract
    if options.include_keywords:
        item["keyword"] = ", ".join(reference.keyword_list)
    item["language"] = reference.language
    item["edition"] = reference.edition
    item["note"] = reference.notes

    return {k: v for k, v in item.items() if v not in (None, "", [])}


class CslJsonFormat(FormatHandler):
    """Read JSON reference data and write CSL-JSON."""

    format = Format.JSON

    def parse(self, content: str) -> list[Reference]:
        """Decode JSON text and convert its items.

        Raises:
            EmptyContentError: If content is blank.
            ParseError: If the text is not valid JSON.
            NoReferencesFoundError: If no items were found.
        """
        if not content or not content.strip():
            raise EmptyContentError("JSON")
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError("JSON", str(e)) from e
        return self.parse_data(data)

    def parse_data(self, data: Any) -> list[Reference]:
        """Convert already decoded JSON data."""
        items = self._items(data)
        references = [from_csl(item) for item in items if isinstance(item, Mapping)]
        if not references:
            raise NoReferencesFoundError("No references found in JSON content")
        return references

    @staticmethod
    def _items(data: Any) -> list[Any]:
        if isinstance(data, list):
            return data
        if isinstance(data, Mapping):
            for key in CONTAINER_KEYS:
                if isinstance(data.get(key), list):
                    return data[key]
            return [data]
        raise InvalidFormatError("JSON content must be an object or an array", "json")

    def export(
        self, references: Sequence[Reference], options: ExportOptions | None = None
    ) -> str:
        """Generate a CSL-JSON document with export metadata."""
        options = options or ExportOptions()
        payload = {
            "export_info": {
                "format": self.format.value,
                "exported_at": datetime.now().isoformat(timespec="seconds"),
                "exported_by": options.exported_by or f"bibxchange {__version__}",
                "total_references": len(references),
                "options": options.to_dict(),
            },
            "references": [
                to_csl(reference, index, options)
                for index, reference in enumerate(references, start=1)
            ],
        }
        return json.dumps(payload, indent=options.json_indent, ensure_ascii=False)

    def validate(self, content: str) -> None:
        if not content or not content.strip():
            raise EmptyContentError("JSON")
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise InvalidFormatError(f"Invalid JSON: {e}", "json") from e
        self._items(data)

    def count(self, content: str) -> int:
        try:
            items = self._items(json.loads(content))
        except (json.JSONDecodeError, InvalidFormatError):
            return 0
        return sum(1 for item in items if isinstance(item, Mapping))

    def template(self, reference_type: str | None = None) -> str:
        csl_type = CSL_TYPES[ReferenceType.coerce(reference_type or "journal")]
        return json.dumps(
            {
                "items": [
                    {
                        "type": csl_type,
                        "title": "Article Title",
                        "author": [{"family": "Surname", "given": "Given"}],
                        "issued": {"date-parts": [[2024]]},
                        "container-title": "Journal Name",
                        "DOI": "10.1000/example",
                    }
                ]
            },
            indent=2,
        )
