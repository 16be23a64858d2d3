"""Canonical reference model.

Every parser produces :class:`Reference` values and every serializer consumes
them. References are immutable; derived copies are made with
:meth:`Reference.replace`.
"""

from collections.abc import Mapping
from typing import Any

import msgspec

from .fields import ReferenceType
from .names import Person, format_names, parse_names
from .normalize import clean_keywords, extract_year, split_keywords

NameValue = str | tuple[Person, ...] | None

# Plain text fields, in the order they are documented.
TEXT_FIELDS = (
    "title",
    "journal",
    "publication",
    "publisher",
    "volume",
    "issue",
    "pages",
    "doi",
    "pmid",
    "isbn",
    "issn",
    "url",
    "abstract",
    "language",
    "location",
    "edition",
    "notes",
    "citation_key",
    "ris_type",
    "bibtex_type",
)

NAME_FIELDS = ("author", "editor")


class Reference(msgspec.Struct, frozen=True, kw_only=True):
    """A single bibliographic record in canonical form.

    ``author`` and ``editor`` hold either a ``"Last, First; Last, First"``
    string or an ordered tuple of :class:`Person`. ``extras`` carries
    format-specific values that have no canonical field, such as unknown
    RIS tags or a BibTeX month.
    """

    type: ReferenceType = ReferenceType.OTHER
    title: str | None = None
    author: NameValue = None
    editor: NameValue = None
    year: int | None = None
    journal: str | None = None
    publication: str | None = None
    publisher: str | None = None
    volume: str | None = None
    issue: str | None = None
    pages: str | None = None
    doi: str | None = None
    pmid: str | None = None
    isbn: str | None = None
    issn: str | None = None
    url: str | None = None
    abstract: str | None = None
    keywords: str | tuple[str, ...] | None = None
    language: str | None = None
    location: str | None = None
    edition: str | None = None
    notes: str | None = None

    citation_key: str | None = None
    ris_type: str | None = None
    bibtex_type: str | None = None
    extras: dict[str, Any] | None = None

    @property
    def authors(self) -> tuple[Person, ...]:
        """Structured author names in order."""
        return parse_names(self.author)

    @property
    def editors(self) -> tuple[Person, ...]:
        """Structured editor names in order."""
        return parse_names(self.editor)

    @property
    def author_string(self) -> str | None:
        """Authors in canonical string form."""
        return format_names(self.author) or None

    @property
    def editor_string(self) -> str | None:
        """Editors in canonical string form."""
        return format_names(self.editor) or None

    @property
    def container(self) -> str | None:
        """Journal title, falling back to the container title."""
        return self.journal or self.publication

    @property
    def keyword_list(self) -> list[str]:
        return split_keywords(self.keywords)

    def extra(self, key: str, default: Any = None) -> Any:
        """Look up a passthrough value."""
        if not self.extras:
            return default
        return self.extras.get(key, default)

    def replace(self, **changes: Any) -> "Reference":
        """Return a copy with the given fields changed."""
        return msgspec.structs.replace(self, **changes)

    def with_extras(self, **items: Any) -> "Reference":
        """Return a copy with additional passthrough values."""
        return self.replace(extras={**(self.extras or {}), **items})

    def stripped(self) -> "Reference":
        """Return a copy with empty strings and empty collections removed."""
        changes = {}
        for name, value in msgspec.structs.asdict(self).items():
            if name == "type":
                continue
            if isinstance(value, str) and not value.strip():
                changes[name] = None
            elif isinstance(value, tuple | dict) and not value:
                changes[name] = None
        if self.extras:
            kept = {k: v for k, v in self.extras.items() if v not in (None, "", [], {})}
            changes["extras"] = kept or None
        return self.replace(**changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary, excluding empty values.

        Returns:
            Dictionary with only non-empty fields.
        """
        data = msgspec.to_builtins(self)
        return {k: v for k, v in data.items() if v not in (None, "", [], {})}

    def to_record_fields(self) -> dict[str, Any]:
        """Field mapping handed to a record store on create and update.

        Names and keywords are flattened to their canonical strings so that
        stored records do not depend on the structured representation.
        """
        fields: dict[str, Any] = {"type": self.type.value}
        for name in TEXT_FIELDS:
            value = getattr(self, name)
            if value:
                fields[name] = value
        for name in NAME_FIELDS:
            value = format_names(getattr(self, name))
            if value:
                fields[name] = value
        if self.year is not None:
            fields["year"] = self.year
        keywords = clean_keywords(self.keywords)
        if keywords:
            fields["keywords"] = keywords
        if self.extras:
            fields["extras"] = dict(self.extras)
        return fields

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Reference":
        """Create a Reference from a field mapping.

        Type labels are mapped onto the canonical taxonomy, name lists onto
        Person tuples and keyword lists onto tuples. Keys that are not
        reference fields are collected into ``extras``.

        Args:
            data: Mapping of field names to values.

        Returns:
            New Reference instance.
        """
        fields: dict[str, Any] = {}
        extras: dict[str, Any] = dict(data.get("extras") or {})

        for key, value in data.items():
            if key in ("extras", "type") or value is None:
                continue
            if key in NAME_FIELDS:
                fields[key] = _coerce_names(value)
            elif key == "year":
                year = extract_year(value)
                if year is None and str(value).strip():
                    extras.setdefault("date", value)
                fields["year"] = year
            elif key == "keywords":
                if isinstance(value, str):
                    fields["keywords"] = value
                else:
                    fields["keywords"] = tuple(split_keywords(value))
            elif key in TEXT_FIELDS:
                fields[key] = str(value)
            else:
                extras[key] = value

        fields["type"] = ReferenceType.coerce(data.get("type"))
        if extras:
            fields["extras"] = extras
        return cls(**fields)


def _coerce_names(value: Any) -> NameValue:
    if isinstance(value, str):
        return value
    if isinstance(value, list | tuple):
        if all(isinstance(v, str) for v in value):
            return format_names(value) or None
        return tuple(
            v if isinstance(v, Person) else Person.from_mapping(v)
            for v in value
            if isinstance(v, Person | Mapping)
        )
    return value
