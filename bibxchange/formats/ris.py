"""RIS (Research Information Systems) format.

RIS is a standardized tag format developed by Research Information Systems,
used for exchanging citation data between different reference managers.
Each line carries a two to four character tag, a dash and a value::

    TY  - JOUR
    AU  - Smith, J.
    TI  - A Study
    ER  -
"""

import logging
import re
from collections.abc import Sequence
from datetime import datetime

from bibxchange.core.fields import RIS_EXPORT_TYPES, RIS_TYPES, ReferenceType
from bibxchange.core.models import Reference
from bibxchange.core.names import format_names, split_names
from bibxchange.core.normalize import (
    clean_doi,
    clean_isbn,
    clean_text,
    extract_year,
    join_pages,
    normalize_pages,
    split_pages,
    wrap_text,
)
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import (
    EmptyContentError,
    InvalidFormatError,
    NoReferencesFoundError,
)

from .base import Format, FormatHandler

logger = logging.getLogger(__name__)

TAG_LINE = re.compile(r"^([A-Z][A-Z0-9]{1,3})\s+-(?:\s+(.*))?$")
ANY_TAG = re.compile(r"^\s*[A-Z0-9]{2,4}\s*-\s*", re.MULTILINE)
TYPE_LINE = re.compile(r"^\s*TY\s*-", re.MULTILINE)
RECORD_BOUNDARY = re.compile(r"^(?:TY|ER)\s+-")
RIS_TAG = re.compile(r"^[A-Z][A-Z0-9]{1,3}$")
ISSN_PATTERN = re.compile(r"^\d{4}-?\d{3}[\dXx]$")

CONTINUATION_INDENT = "      "

# Tags consumed into canonical fields. Anything else is kept in extras.
KNOWN_TAGS = {
    "TY", "ER", "TI", "T1", "AU", "A1", "ED", "A2", "JO", "JF", "JA", "J2",
    "T2", "BT", "PY", "Y1", "DA", "VL", "IS", "CP", "SP", "EP", "PB", "CY",
    "PP", "DO", "SN", "UR", "LK", "AB", "N2", "KW", "LA", "N1", "ET",
}  # fmt: skip

SOURCE_MARKERS = (
    "EndNote",
    "Zotero",
    "Mendeley",
    "RefWorks",
    "PubMed",
    "Web of Science",
)


# Skeleton records written by ``RisFormat.template``.
TEMPLATE_TAGS = {
    ReferenceType.JOURNAL: [
        ("AU", "Author Name"),
        ("TI", "Article Title"),
        ("JO", "Journal Name"),
        ("VL", "Volume"),
        ("IS", "Issue"),
        ("SP", "Start Page"),
        ("EP", "End Page"),
        ("PY", "Year"),
        ("DO", "DOI"),
    ],
    ReferenceType.BOOK: [
        ("AU", "Author Name"),
        ("TI", "Book Title"),
        ("PB", "Publisher"),
        ("PP", "Place of Publication"),
        ("PY", "Year"),
        ("SN", "ISBN"),
    ],
    ReferenceType.CHAPTER: [
        ("AU", "Author Name"),
        ("TI", "Chapter Title"),
        ("BT", "Book Title"),
        ("ED", "Editor Name"),
        ("PB", "Publisher"),
        ("PP", "Place of Publication"),
        ("SP", "Start Page"),
        ("EP", "End Page"),
        ("PY", "Year"),
    ],
}

GENERIC_TEMPLATE = [
    ("AU", "Author Name"),
    ("TI", "Title"),
    ("PY", "Year"),
    ("UR", "URL"),
]


class RisFormat(FormatHandler):
    """Parse and generate RIS content."""

    format = Format.RIS

    def parse(self, content: str) -> list[Reference]:
        """Parse RIS text into references.

        A ``TY`` line opens a record and ``ER`` closes it. Repeated tags
        accumulate in order, untagged or indented lines continue the previous
        value, and a final record without ``ER`` is still returned.

        Raises:
            EmptyContentError: If content is blank.
            NoReferencesFoundError: If no record could be read.
        """
        if not content or not content.strip():
            raise EmptyContentError("RIS")

        references = [self._build(tags) for tags in self._read_records(content)]
        if not references:
            raise NoReferencesFoundError("No references found in RIS content")
        logger.debug(f"Parsed {len(references)} RIS records")
        return references

    def _read_records(self, content: str) -> list[dict[str, list[str]]]:
        records = []
        current: dict[str, list[str]] | None = None
        last_tag = None

        for raw in content.lstrip("\ufeff").splitlines():
            line = raw.strip()
            if not line:
                continue

            # Indented lines continue the previous value even if they look
            # like a tag.
            indented = raw[:1].isspace() and not RECORD_BOUNDARY.match(line)
            if indented and current is not None and last_tag:
                values = current[last_tag]
                values[-1] = f"{values[-1]} {line}".strip()
                continue

            match = TAG_LINE.match(line)
            if match:
                tag, value = match.group(1), (match.group(2) or "").strip()
                if tag == "TY":
                    if current is not None:
                        records.append(current)
                    current = {"TY": [value]}
                    last_tag = tag
                elif current is None:
                    continue
                elif tag == "ER":
                    records.append(current)
                    current = None
                    last_tag = None
                else:
                    current.setdefault(tag, []).append(value)
                    last_tag = tag
            elif current is not None and last_tag:
                values = current[last_tag]
                values[-1] = f"{values[-1]} {line}".strip()

        if current is not None:
            records.append(current)
        return records

    def _build(self, tags: dict[str, list[str]]) -> Reference:
        def first(*names: str) -> str | None:
            for name in names:
                for value in tags.get(name, []):
                    text = clean_text(value)
                    if text:
                        return text
            return None

        def every(*names: str) -> list[str]:
            values = []
            for name in names:
                for value in tags.get(name, []):
                    text = clean_text(value)
                    if text:
                        values.append(text)
            return values

        ris_type = (first("TY") or "GEN").upper()
        extras: dict[str, object] = {}

        date_text = first("PY", "Y1")
        year = extract_year(date_text)
        if year is None:
            if date_text:
                extras["date"] = date_text
            else:
                year = extract_year(first("DA"))

        start = first("SP")
        end = first("EP")
        pages = join_pages(start, end) if end else normalize_pages(start)

        isbn = issn = None
        for value in every("SN"):
            if ISSN_PATTERN.match(value) and not issn:
                issn = value.upper()
            elif not isbn:
                isbn = clean_isbn(value)

        for tag, values in tags.items():
            if tag not in KNOWN_TAGS:
                cleaned = [v for v in (clean_text(x) for x in values) if v]
                if cleaned:
                    extras[tag] = cleaned[0] if len(cleaned) == 1 else cleaned

        return Reference(
            type=RIS_TYPES.get(ris_type, ReferenceType.OTHER),
            title=first("TI", "T1"),
            author=format_names(every("AU", "A1")) or None,
            editor=format_names(every("ED", "A2")) or None,
            year=year,
            journal=first("JO", "JF", "JA", "J2"),
            publication=first("T2", "BT"),
            volume=first("VL"),
            issue=first("IS", "CP"),
            pages=pages,
            publisher=first("PB"),
            location=first("CY", "PP"),
            doi=clean_doi(first("DO")),
            isbn=isbn,
            issn=issn,
            url=first("UR", "LK"),
            abstract=first("AB", "N2"),
            keywords=", ".join(every("KW")) or None,
            language=first("LA"),
            notes="; ".join(every("N1")) or None,
            edition=first("ET"),
            ris_type=ris_type,
            extras=extras or None,
        )

    def export(
        self, references: Sequence[Reference], options: ExportOptions | None = None
    ) -> str:
        """Generate RIS text, one record per reference."""
        options = options or ExportOptions()
        blocks = []

        if options.include_header:
            stamp = f"{datetime.now():%Y-%m-%d %H:%M:%S}"
            blocks.append(
                "\n".join(
                    [
                        f"# Exported by bibxchange on {stamp}",
                        f"# Total references: {len(references)}",
                    ]
                )
            )

        for reference in references:
            blocks.append("\n".join(self._format_record(reference, options)))

        return "\n\n".join(blocks) + "\n"

    def _format_record(self, ref: Reference, options: ExportOptions) -> list[str]:
        lines: list[str] = []

        def add(tag: str, value: object) -> None:
            text = clean_text(value)
            if text:
                lines.append(f"{tag}  - {text}")

        add("TY", self.export_type(ref))
        for name in split_names(ref.author):
            add("AU", name)
        for name in split_names(ref.editor):
            add("ED", name)
        add("TI", ref.title)
        add("JO", ref.journal)
        add("T2", ref.publication)
        add("PY", ref.year)
        add("VL", ref.volume)
        add("IS", ref.issue)

        start, end = split_pages(ref.pages)
        add("SP", start)
        add("EP", end)

        add("PB", ref.publisher)
        add("CY", ref.location)
        add("DO", ref.doi)
        add("SN", ref.isbn)
        add("SN", ref.issn)
        if options.include_urls:
            add("UR", ref.url)

        if options.include_abstracts and ref.abstract:
            wrapped = wrap_text(ref.abstract, options.ris_line_length)
            if wrapped:
                lines.append(f"AB  - {wrapped[0]}")
                lines.extend(f"{CONTINUATION_INDENT}{line}" for line in wrapped[1:])

        if options.include_keywords:
            for keyword in ref.keyword_list:
                add("KW", keyword)

        add("LA", ref.language)
        add("ET", ref.edition)
        add("N1", ref.notes)

        for tag, value in (ref.extras or {}).items():
            if RIS_TAG.match(tag) and tag not in KNOWN_TAGS:
                for item in value if isinstance(value, list) else [value]:
                    add(tag, item)

        lines.append("ER  - ")
        return lines

    @staticmethod
    def export_type(reference: Reference) -> str:
        """RIS type code for a reference, reusing its source code when it agrees."""
        original = (reference.ris_type or "").upper()
        if original and RIS_TYPES.get(original) == reference.type:
            return original
        return RIS_EXPORT_TYPES[reference.type]

    def validate(self, content: str) -> None:
        if not content or not content.strip():
            raise EmptyContentError("RIS")
        if not ANY_TAG.search(content):
            raise InvalidFormatError("Content does not contain RIS tags", "ris")
        if not TYPE_LINE.search(content):
            raise InvalidFormatError("RIS content is missing a TY (type) tag", "ris")

    def count(self, content: str) -> int:
        return len(TYPE_LINE.findall(content or ""))

    def guess_source(self, content: str) -> str:
        """Guess which application produced the content."""
        for marker in SOURCE_MARKERS:
            if marker in content:
                return marker
        return "Unknown"

    def metadata(self, content: str) -> dict[str, object]:
        """Summarize RIS content without parsing it."""
        return {
            "format": self.format.value,
            "reference_count": self.count(content),
            "file_size": len(content.encode("utf-8")),
            "line_count": content.count("\n") + 1,
            "estimated_source": self.guess_source(content),
        }

    def clean_content(self, content: str) -> str:
        """Normalize line endings, blank lines and tag spacing."""
        content = content.replace("\r\n", "\n").replace("\r", "\n").lstrip("\ufeff")
        content = re.sub(r"\n{3,}", "\n\n", content)
        content = re.sub(r"^([A-Z0-9]{2,4})\s*-[ \t]*", r"\1  - ", content, flags=re.M)
        return content.strip()

    def split_records(self, content: str) -> list[str]:
        """Split content into standalone RIS records, each ending in ``ER``."""
        records = []
        for tags in self._read_records(content):
            lines = [
                f"{tag}  - {value}".rstrip()
                for tag, values in tags.items()
                for value in values
            ]
            lines.append("ER  - ")
            records.append("\n".join(lines))
        return records

    def merge(self, contents: Sequence[str]) -> str:
        """Concatenate several RIS payloads under one header."""
        parts = []
        total = 0
        for index, content in enumerate(contents, start=1):
            cleaned = self.clean_content(content)
            if not cleaned:
                continue
            count = self.count(cleaned)
            total += count
            parts.append(
                f"# References from file {index} ({count} references)\n{cleaned}"
            )

        header = "\n".join(
            [
                f"# Merged RIS file created on {datetime.now():%Y-%m-%d %H:%M:%S}",
                f"# Total files merged: {len(contents)}",
                f"# Total references: {total}",
            ]
        )
        return "\n\n".join([header, *parts]) + "\n"

    def template(self, reference_type: str | None = None) -> str:
        """Return a skeleton record for a RIS code or canonical type.

        Args:
            reference_type: A RIS code such as ``"BOOK"`` or a canonical type
                such as ``"chapter"``. Defaults to ``"JOUR"``.
        """
        value = (reference_type or "JOUR").strip()
        code = value.upper()
        if code in RIS_TYPES:
            canonical = RIS_TYPES[code]
        else:
            canonical = ReferenceType.coerce(value)
            code = RIS_EXPORT_TYPES[canonical]

        tags = TEMPLATE_TAGS.get(canonical, GENERIC_TEMPLATE)
        lines = [f"TY  - {code}"]
        lines.extend(f"{tag}  - [{label}]" for tag, label in tags)
        lines.append("ER  - ")
        return "\n".join(lines)
