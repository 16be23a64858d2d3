"""CSV reference lists.

The first non-empty row names the columns. ``title`` and ``type`` columns are
required; column names are matched case-insensitively and through an alias
table so spreadsheets exported by other tools can be read directly.
"""

import csv
import logging
from collections.abc import Sequence
from io import StringIO
from typing import Any

from bibxchange.core.fields import CSV_HEADER_ALIASES, CSV_HEADERS, ReferenceType
from bibxchange.core.models import Reference
from bibxchange.core.names import format_names
from bibxchange.core.normalize import (
    clean_doi,
    clean_isbn,
    clean_keywords,
    clean_pmid,
    clean_text,
    clean_url,
    extract_year,
    normalize_pages,
    strip_html,
    truncate_text,
)
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import (
    EmptyContentError,
    MissingHeaderError,
    NoDataError,
    NoReferencesFoundError,
)

from .base import Format, FormatHandler

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = ("title", "type")
DELIMITERS = (",", ";", "\t", "|")

# Canonical fields that may appear as CSV columns.
CSV_FIELDS = set(CSV_HEADERS) - {"id"}

CLEANERS = {
    "doi": clean_doi,
    "pmid": clean_pmid,
    "isbn": clean_isbn,
    "url": clean_url,
    "keywords": clean_keywords,
    "pages": normalize_pages,
}


def normalize_header(header: str) -> str:
    """Map a column name onto a canonical field name."""
    key = "_".join(header.strip().lstrip("\ufeff").lower().replace("-", " ").split())
    return CSV_HEADER_ALIASES.get(key, key)


class CsvFormat(FormatHandler):
    """Parse and generate CSV reference lists."""

    format = Format.CSV

    def _rows(self, content: str) -> list[list[str]]:
        reader = csv.reader(StringIO(content.lstrip("\ufeff")))
        return [row for row in reader if any(cell.strip() for cell in row)]

    def _check_headers(self, headers: list[str]) -> None:
        for required in REQUIRED_HEADERS:
            if required not in headers:
                raise MissingHeaderError(required)

    def parse(self, content: str) -> list[Reference]:
        """Parse CSV text into references.

        Rows whose column count differs from the header are skipped.

        Raises:
            EmptyContentError: If content is blank.
            NoDataError: If no rows could be read.
            MissingHeaderError: If the title or type column is missing.
            NoReferencesFoundError: If no data row could be used.
        """
        if not content or not content.strip():
            raise EmptyContentError("CSV")

        rows = self._rows(content)
        if not rows:
            raise NoDataError("No data found in CSV content")

        raw_headers = [h.strip() for h in rows[0]]
        headers = [normalize_header(h) for h in raw_headers]
        self._check_headers(headers)

        references = []
        for line_number, row in enumerate(rows[1:], start=2):
            if len(row) != len(headers):
                logger.debug(
                    f"Skipping CSV row {line_number}: expected {len(headers)} "
                    f"columns, got {len(row)}"
                )
                continue
            references.append(self._build(raw_headers, headers, row))

        if not references:
            raise NoReferencesFoundError("No references found in CSV content")
        return references

    def _build(
        self, raw_headers: list[str], headers: list[str], row: list[str]
    ) -> Reference:
        fields: dict[str, Any] = {}
        extras: dict[str, Any] = {}

        for raw_header, header, cell in zip(raw_headers, headers, row):
            value = cell.strip()
            if not value:
                continue
            if header == "id":
                extras["id"] = value
            elif header == "type":
                fields["type"] = value
            elif header == "year":
                year = extract_year(value)
                if year is None:
                    extras["date"] = value
                else:
                    fields["year"] = year
            elif header in CSV_FIELDS:
                cleaner = CLEANERS.get(header, clean_text)
                cleaned = cleaner(value)
                if cleaned:
                    fields.setdefault(header, cleaned)
            else:
                extras[raw_header] = value

        label = fields.pop("type", None)
        ref_type = ReferenceType.coerce(label)
        unmapped = label and label.strip().lower() != "other"
        if unmapped and ref_type is ReferenceType.OTHER:
            extras["csv_type"] = label

        return Reference(type=ref_type, extras=extras or None, **fields)

    def export(
        self, references: Sequence[Reference], options: ExportOptions | None = None
    ) -> str:
        """Generate CSV text with one row per reference."""
        options = options or ExportOptions()
        output = StringIO()
        writer = csv.writer(
            output,
            delimiter=options.csv_delimiter,
            quotechar='"',
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\n",
        )

        if options.include_header:
            writer.writerow(list(CSV_HEADERS.values()))

        for reference in references:
            writer.writerow(self._format_row(reference, options))

        return output.getvalue()

    def _format_row(self, ref: Reference, options: ExportOptions) -> list[str]:
        abstract = ""
        if options.include_abstracts and ref.abstract:
            abstract = truncate_text(
                strip_html(ref.abstract) or "", options.csv_abstract_length
            )

        values = {
            "id": ref.extra("id"),
            "type": ref.type.value,
            "author": format_names(ref.author),
            "editor": format_names(ref.editor),
            "year": ref.year,
            "url": clean_url(ref.url) if options.include_urls else None,
            "abstract": abstract,
            "keywords": (
                ", ".join(ref.keyword_list) if options.include_keywords else None
            ),
        }

        row = []
        for field in CSV_HEADERS:
            value = values[field] if field in values else getattr(ref, field)
            row.append("" if value is None else str(value))
        return row

    def validate(self, content: str) -> None:
        if not content or not content.strip():
            raise EmptyContentError("CSV")
        rows = self._rows(content)
        if not rows:
            raise NoDataError("No data found in CSV content")
        self._check_headers([normalize_header(h) for h in rows[0]])

    def count(self, content: str) -> int:
        if not content or not content.strip():
            return 0
        return max(0, len(self._rows(content)) - 1)

    def detect_delimiter(self, content: str) -> str:
        """Guess the delimiter from the first five lines.

        Only a convenience for callers; :meth:`parse` always reads commas.
        """
        sample = "\n".join(content.splitlines()[:5])
        counts = {delimiter: sample.count(delimiter) for delimiter in DELIMITERS}
        best = max(counts, key=counts.get)
        return best if counts[best] else ","

    def template(self, reference_type: str | None = None) -> str:
        example = Reference(
            type=ReferenceType.coerce(reference_type or ReferenceType.JOURNAL),
            title="Example Article Title",
            author="Smith, John; Doe, Jane",
            year=2023,
            journal="Journal of Examples",
            publisher="Example Press",
            volume="15",
            issue="3",
            pages="123-145",
            doi="10.1000/example.doi",
            url="https://example.com",
            abstract="This is an example abstract.",
            keywords="example, research, academic",
            language="en",
        )
        return self.export([example])
