"""BibTeX format parsing and generation.

Entries are located with an explicit brace-depth scanner, so field values may
nest braces to any depth and contain escaped braces. Field values are cleaned
from LaTeX into plain Unicode on import and escaped again on export.

Key components:
- StringRegistry: @string abbreviations, including the predefined months
- BibtexFormat: the format handler
"""

import logging
import re
import unicodedata
from collections.abc import Sequence
from datetime import datetime

from bibxchange.core.fields import (
    BIBTEX_EXPORT_TYPES,
    BIBTEX_TYPES,
    ReferenceType,
)
from bibxchange.core.keys import CitationKeyGenerator
from bibxchange.core.models import Reference
from bibxchange.core.names import Person, split_names
from bibxchange.core.normalize import (
    clean_doi,
    clean_isbn,
    clean_keywords,
    clean_text,
    extract_year,
    normalize_pages,
)
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import (
    EmptyContentError,
    InvalidFormatError,
    NoReferencesFoundError,
    UnbalancedBracesError,
)

from .base import Format, FormatHandler

logger = logging.getLogger(__name__)

ENTRY_MARKER = re.compile(r"@\s*\w+\s*[{(]")
ENTRY_START = re.compile(r"@\s*(\w+)\s*([{(])")
FIELD_NAME = re.compile(r"\s*([A-Za-z][\w:.+-]*)\s*=\s*")
BARE_VALUE = re.compile(r"[^\s,#{}\"]+")
AND_SEPARATOR = re.compile(r"\s+and\s+")
OPEN_BRACE = re.compile(r"(?<!\\)\{")
CLOSE_BRACE = re.compile(r"(?<!\\)\}")

SKIPPED_ENTRIES = {"comment", "preamble"}

EMPHASIS = re.compile(
    r"\\(?:textbf|textit|emph|textsl|textsc|textup|textrm|textsf|texttt|underline)"
    r"\s*\{([^{}]*)\}"
)
DECLARATION = re.compile(
    r"\{\\(?:bf|it|em|sl|sc|rm|sf|tt|bfseries|itshape)\s+([^{}]*)\}"
)
SYMBOL_ACCENT = re.compile(
    r"""\\(["'`^~=.])\s*(?:\{\s*([A-Za-z]|\\[ij])\s*\}|([A-Za-z]))"""
)
LETTER_ACCENT = re.compile(
    r"\\([crvuHk])(?:\s*\{\s*([A-Za-z]|\\[ij])\s*\}|\s+([A-Za-z]))"
)
SPECIAL_LETTER = re.compile(r"\\(ss|ae|AE|oe|OE|aa|AA|o|O|l|L|i|j)(?![A-Za-z])\s?")

COMBINING_MARKS = {
    '"': "\u0308",
    "'": "\u0301",
    "`": "\u0300",
    "^": "\u0302",
    "~": "\u0303",
    "=": "\u0304",
    ".": "\u0307",
    "c": "\u0327",
    "r": "\u030a",
    "v": "\u030c",
    "u": "\u0306",
    "H": "\u030b",
    "k": "\u0328",
}

SPECIAL_LETTERS = {
    "ss": "ß",
    "ae": "æ",
    "AE": "Æ",
    "oe": "œ",
    "OE": "Œ",
    "aa": "å",
    "AA": "Å",
    "o": "ø",
    "O": "Ø",
    "l": "ł",
    "L": "Ł",
    "i": "i",
    "j": "j",
}

# Escaped characters that must survive brace and tie removal.
_PROTECTED = {
    "\\{": "\ue000",
    "\\}": "\ue001",
    "\\~{}": "\ue002",
    "\\textasciitilde{}": "\ue002",
    "\\textbackslash{}": "\ue003",
}

UNESCAPE_MAP = {
    "\\\\": "\\",
    "\\$": "$",
    "\\&": "&",
    "\\#": "#",
    "\\_": "_",
    "\\%": "%",
    "\\^{}": "^",
}

ESCAPE_CHARS = ("{", "}", "&", "$", "%", "#", "_")

# Fields written without escaping. Name lists are escaped per name.
VERBATIM_FIELDS = ("url", "doi", "author", "editor")

# Fields emitted for each entry type, in order. Remaining values follow in
# TRAILING_FIELDS order.
FIELD_ORDER = {
    "article": [
        "author", "title", "journal", "year", "volume", "number", "pages", "doi",
        "url",
    ],
    "book": [
        "author", "editor", "title", "publisher", "address", "year", "isbn", "url",
    ],
    "incollection": [
        "author", "title", "booktitle", "editor", "publisher", "address", "year",
        "pages",
    ],
    "inproceedings": [
        "author", "title", "booktitle", "year", "pages", "organization", "address",
    ],
    "phdthesis": ["author", "title", "school", "year", "type", "address"],
    "techreport": [
        "author", "title", "institution", "year", "number", "type", "address",
    ],
    "misc": ["author", "title", "year", "note"],
}  # fmt: skip

ORDER_ALIASES = {
    "inbook": "incollection",
    "conference": "inproceedings",
    "proceedings": "inproceedings",
    "mastersthesis": "phdthesis",
    "thesis": "phdthesis",
    "manual": "techreport",
    "report": "techreport",
}

# Placeholder values for skeleton entries.
TEMPLATE_VALUES = {
    "author": "Author Name",
    "editor": "Editor Name",
    "title": "Title",
    "journal": "Journal Name",
    "booktitle": "Book Title",
    "publisher": "Publisher",
    "address": "City",
    "year": "Year",
    "volume": "Volume",
    "number": "Number",
    "pages": "Start--End",
    "doi": "DOI",
    "url": "URL",
    "isbn": "ISBN",
    "organization": "Organization",
    "school": "School",
    "institution": "Institution",
    "type": "Type",
    "note": "Note",
}

# Fields read into the publisher when no publisher is given.
PUBLISHER_FIELDS = ("school", "institution", "organization")

TRAILING_FIELDS = [
    "author",
    "editor",
    "title",
    "journal",
    "booktitle",
    "edition",
    "publisher",
    "school",
    "institution",
    "organization",
    "address",
    "year",
    "month",
    "volume",
    "number",
    "pages",
    "isbn",
    "issn",
    "doi",
    "pmid",
    "url",
    "abstract",
    "keywords",
    "language",
    "note",
]

THESIS_TYPES = {"phdthesis", "mastersthesis", "thesis"}
REPORT_TYPES = {"techreport", "manual", "report"}

# BibTeX fields consumed into canonical reference fields on import.
CANONICAL_FIELDS = {
    "author", "editor", "title", "journal", "booktitle", "year", "date",
    "volume", "number", "issue", "pages", "publisher", "address", "location",
    "doi", "url", "isbn", "issn", "pmid", "abstract", "keywords", "language",
    "edition", "note",
}  # fmt: skip

# Extras that are not BibTeX fields.
PRIVATE_EXTRAS = {"id", "date", "csv_type", "csl_type"}
BIBTEX_FIELD = re.compile(r"^[a-z][a-z0-9_-]*$")


class StringRegistry:
    """Handle @string abbreviations."""

    # Predefined month abbreviations
    PREDEFINED_STRINGS = {
        "jan": "January",
        "feb": "February",
        "mar": "March",
        "apr": "April",
        "may": "May",
        "jun": "June",
        "jul": "July",
        "aug": "August",
        "sep": "September",
        "oct": "October",
        "nov": "November",
        "dec": "December",
    }

    def __init__(self):
        self.strings = dict(self.PREDEFINED_STRINGS)

    def add_string(self, key: str, value: str):
        """Add a string abbreviation."""
        self.strings[key.lower()] = value

    def resolve(self, token: str) -> str:
        """Expand a bare token; numbers and unknown names stay literal."""
        if token.isdigit():
            return token
        return self.strings.get(token.lower(), token)


def _find_close(text: str, start: int, opener: str = "{") -> int | None:
    """Index of the delimiter closing a group opened just before ``start``."""
    depth = 0
    i = start
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            if depth == 0:
                return i if opener == "{" else None
            depth -= 1
        elif char == ")" and opener == "(" and depth == 0:
            return i
        i += 1
    return None


def _is_braced(value: str) -> bool:
    return value.startswith("{") and _find_close(value, 1) == len(value) - 1


def _find_quote(text: str, start: int) -> int:
    depth = 0
    i = start
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == '"' and depth <= 0:
            return i
        i += 1
    return len(text)


def _brace_counts(text: str) -> tuple[int, int]:
    return len(OPEN_BRACE.findall(text)), len(CLOSE_BRACE.findall(text))


def _split_top_level_and(value: str) -> list[str]:
    """Split a name list on ``and`` outside of braces."""
    mask = []
    depth = 0
    for char in value:
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        mask.append("_" if depth and char not in "{}" else char)

    parts = []
    last = 0
    for match in AND_SEPARATOR.finditer("".join(mask)):
        parts.append(value[last : match.start()])
        last = match.end()
    parts.append(value[last:])
    return [p for p in parts if p.strip()]


def _combine(base: str, mark: str) -> str:
    if base in ("\\i", "\\j"):
        base = base[1]
    return unicodedata.normalize("NFC", base + mark)


def latex_to_unicode(text: str) -> str:
    """Convert a LaTeX field value to plain Unicode text.

    Emphasis macros are removed and keep only their content.
    """
    previous = None
    while previous != text:
        previous = text
        text = EMPHASIS.sub(r"\1", text)
        text = DECLARATION.sub(r"\1", text)

    text = SYMBOL_ACCENT.sub(
        lambda m: _combine(m.group(2) or m.group(3), COMBINING_MARKS[m.group(1)]), text
    )
    text = LETTER_ACCENT.sub(
        lambda m: _combine(m.group(2) or m.group(3), COMBINING_MARKS[m.group(1)]), text
    )
    text = SPECIAL_LETTER.sub(lambda m: SPECIAL_LETTERS[m.group(1)], text)

    text = _unescape(text)
    text = text.replace("~", " ")
    text = text.replace("---", "—").replace("--", "–")
    text = text.replace("``", '"').replace("''", '"')
    return clean_text(_restore(text)) or ""


def _unescape(text: str) -> str:
    for escaped, placeholder in _PROTECTED.items():
        text = text.replace(escaped, placeholder)
    longest_first = sorted(UNESCAPE_MAP.items(), key=lambda item: -len(item[0]))
    for escaped, char in longest_first:
        text = text.replace(escaped, char)
    return text.replace("{", "").replace("}", "")


def _restore(text: str) -> str:
    return (
        text.replace("\ue000", "{")
        .replace("\ue001", "}")
        .replace("\ue002", "~")
        .replace("\ue003", "\\")
    )


def unescape_verbatim(text: str) -> str:
    """Light cleanup for URL-like fields: escapes and grouping braces only."""
    return clean_text(_restore(_unescape(text))) or ""


def _name_list(value) -> str:
    """Join names with "and", bracing names that contain "and" themselves."""
    names = []
    for name in split_names(value):
        name = escape(name)
        names.append(f"{{{name}}}" if AND_SEPARATOR.search(name) else name)
    return " and ".join(names)


def escape(text: str) -> str:
    """Escape special LaTeX characters for BibTeX.

    Args:
        text: Text to escape.

    Returns:
        Text with special characters escaped and dashes in LaTeX form.
    """
    if not text:
        return text
    result = text.replace("\\", "\ue003")
    for char in ESCAPE_CHARS:
        result = result.replace(char, f"\\{char}")
    result = result.replace("~", r"\textasciitilde{}")
    result = result.replace("\ue003", r"\textbackslash{}")
    return result.replace("—", "---").replace("–", "--")


class BibtexFormat(FormatHandler):
    """Parse and generate BibTeX content."""

    format = Format.BIBTEX

    def __init__(self, key_generator: CitationKeyGenerator | None = None):
        self.key_generator = key_generator

    def parse(self, content: str) -> list[Reference]:
        """Parse BibTeX text into references.

        Raises:
            EmptyContentError: If content is blank.
            InvalidFormatError: If no entry marker is present.
            UnbalancedBracesError: If braces do not balance.
            NoReferencesFoundError: If only strings or comments were found.
        """
        self.validate(content)

        strings = StringRegistry()
        references = []
        for entry_type, body in self._scan(content):
            if entry_type in SKIPPED_ENTRIES:
                logger.debug(f"Skipping @{entry_type} block")
                continue
            if entry_type == "string":
                for name, value in self._parse_fields(body, strings):
                    strings.add_string(name, value)
                continue

            key, fields_text = self._split_key(body)
            fields = self._parse_fields(fields_text, strings)
            references.append(self._build(entry_type, key, fields))

        if not references:
            raise NoReferencesFoundError("No entries found in BibTeX content")
        logger.debug(f"Parsed {len(references)} BibTeX entries")
        return references

    def _scan(self, text: str) -> list[tuple[str, str]]:
        """Locate top-level entries, returning their type and body text."""
        entries = []
        pos = 0
        while pos < len(text):
            char = text[pos]
            if char == "%":
                end = text.find("\n", pos)
                pos = len(text) if end == -1 else end + 1
                continue
            if char != "@":
                pos += 1
                continue

            match = ENTRY_START.match(text, pos)
            if not match:
                pos += 1
                continue

            end = _find_close(text, match.end(), match.group(2))
            if end is None:
                raise UnbalancedBracesError(*_brace_counts(text))
            entries.append((match.group(1).lower(), text[match.end() : end]))
            pos = end + 1
        return entries

    @staticmethod
    def _split_key(body: str) -> tuple[str | None, str]:
        comma = body.find(",")
        head = body if comma == -1 else body[:comma]
        if "=" in head:
            return None, body
        key = head.strip() or None
        return key, "" if comma == -1 else body[comma + 1 :]

    def _parse_fields(
        self, body: str, strings: StringRegistry
    ) -> list[tuple[str, str]]:
        """Read ``name = value`` pairs, expanding macros and ``#`` concatenation."""
        fields = []
        i = 0
        n = len(body)
        while i < n:
            while i < n and (body[i].isspace() or body[i] == ","):
                i += 1
            if i >= n:
                break

            match = FIELD_NAME.match(body, i)
            if not match:
                comma = body.find(",", i)
                i = n if comma == -1 else comma + 1
                continue

            name = match.group(1).lower()
            i = match.end()
            parts = []
            while i < n:
                char = body[i]
                if char == "{":
                    end = _find_close(body, i + 1)
                    if end is None:
                        raise UnbalancedBracesError(*_brace_counts(body))
                    parts.append(body[i + 1 : end])
                    i = end + 1
                elif char == '"':
                    end = _find_quote(body, i + 1)
                    parts.append(body[i + 1 : end])
                    i = end + 1
                else:
                    bare = BARE_VALUE.match(body, i)
                    if not bare:
                        break
                    parts.append(strings.resolve(bare.group()))
                    i = bare.end()

                while i < n and body[i].isspace():
                    i += 1
                if i < n and body[i] == "#":
                    i += 1
                    while i < n and body[i].isspace():
                        i += 1
                    continue
                break

            fields.append((name, "".join(parts)))
        return fields

    def _build(
        self, entry_type: str, key: str | None, fields: list[tuple[str, str]]
    ) -> Reference:
        raw = dict(fields)
        text = {
            name: latex_to_unicode(value)
            for name, value in raw.items()
            if name not in ("author", "editor", "url", "doi")
        }
        extras: dict[str, object] = {}

        def names(field: str) -> str | tuple[Person, ...] | None:
            value = raw.get(field)
            if not value:
                return None
            cleaned = [
                (latex_to_unicode(part), _is_braced(part.strip()))
                for part in _split_top_level_and(value)
            ]
            cleaned = [(name, braced) for name, braced in cleaned if name]
            # A fully braced name is one corporate name.
            if any(braced for _, braced in cleaned):
                return tuple(
                    Person(family=name) if braced else Person.from_string(name)
                    for name, braced in cleaned
                )
            return "; ".join(name for name, _ in cleaned) or None

        year = extract_year(text.get("year"))
        if year is None:
            if text.get("year"):
                extras["date"] = text["year"]
            else:
                year = extract_year(text.get("date"))

        publisher = text.get("publisher") or None
        for field in PUBLISHER_FIELDS:
            if text.get(field):
                if publisher is None:
                    publisher = text[field]
                else:
                    extras[field] = text[field]

        for name, value in text.items():
            if name in CANONICAL_FIELDS or name in PUBLISHER_FIELDS:
                continue
            if value:
                extras[name] = value

        return Reference(
            type=BIBTEX_TYPES.get(entry_type, ReferenceType.OTHER),
            title=text.get("title") or None,
            author=names("author"),
            editor=names("editor"),
            year=year,
            journal=text.get("journal") or None,
            publication=text.get("booktitle") or None,
            publisher=publisher,
            volume=text.get("volume") or None,
            issue=text.get("number") or text.get("issue") or None,
            pages=normalize_pages(text.get("pages")),
            doi=clean_doi(unescape_verbatim(raw.get("doi", ""))),
            url=unescape_verbatim(raw.get("url", "")) or None,
            isbn=clean_isbn(text.get("isbn")),
            issn=text.get("issn") or None,
            pmid=text.get("pmid") or None,
            abstract=text.get("abstract") or None,
            keywords=clean_keywords(text.get("keywords")),
            language=text.get("language") or None,
            location=text.get("address") or text.get("location") or None,
            edition=text.get("edition") or None,
            notes=text.get("note") or None,
            citation_key=key,
            bibtex_type=entry_type,
            extras=extras or None,
        )

    def export(
        self, references: Sequence[Reference], options: ExportOptions | None = None
    ) -> str:
        """Generate BibTeX text.

        Citation keys are generated where missing and are unique within the
        returned payload.
        """
        options = options or ExportOptions()
        keys = self.key_generator or CitationKeyGenerator()
        blocks = []

        if options.include_header:
            blocks.append(
                f"% Exported by bibxchange on {datetime.now():%Y-%m-%d %H:%M:%S}\n"
                f"% Total entries: {len(references)}"
            )

        for reference in references:
            key = keys.generate(reference)
            blocks.append(self.encode_entry(reference, key, options))

        return "\n\n".join(blocks) + "\n"

    @staticmethod
    def export_type(reference: Reference) -> str:
        """BibTeX entry type, reusing the source type when it agrees."""
        original = (reference.bibtex_type or "").lower()
        if original and BIBTEX_TYPES.get(original) == reference.type:
            return original
        return BIBTEX_EXPORT_TYPES[reference.type]

    def encode_entry(self, ref: Reference, key: str, options: ExportOptions) -> str:
        """Encode a single reference as a BibTeX entry."""
        entry_type = self.export_type(ref)
        values = self._field_values(ref, entry_type, options)

        order_type = ORDER_ALIASES.get(entry_type, entry_type)
        order = FIELD_ORDER.get(order_type, FIELD_ORDER["misc"])
        lines = [f"@{entry_type}{{{key},"]
        emitted = set()
        for field in [*order, *TRAILING_FIELDS, *values]:
            value = values.get(field)
            if field in emitted or not value:
                continue
            emitted.add(field)
            if field in VERBATIM_FIELDS:
                lines.append(f"    {field} = {{{value}}},")
            else:
                lines.append(f"    {field} = {{{escape(value)}}},")

        if lines[-1].endswith(","):
            lines[-1] = lines[-1][:-1]

        lines.append("}")
        return "\n".join(lines)

    def _field_values(
        self, ref: Reference, entry_type: str, options: ExportOptions
    ) -> dict[str, str]:
        values: dict[str, str] = {}
        extras = ref.extras or {}

        values["author"] = _name_list(ref.author)
        values["editor"] = _name_list(ref.editor)
        values["title"] = ref.title or ""

        if entry_type == "article" and not ref.journal:
            values["journal"] = ref.publication or ""
        else:
            values["journal"] = ref.journal or ""
            values["booktitle"] = ref.publication or ""

        publisher = ref.publisher or ""
        if entry_type in THESIS_TYPES and "school" not in extras:
            values["school"] = publisher
        elif entry_type in REPORT_TYPES and "institution" not in extras:
            values["institution"] = publisher
        else:
            values["publisher"] = publisher

        values["address"] = ref.location or ""
        values["year"] = str(ref.year) if ref.year else ""
        values["volume"] = ref.volume or ""
        values["number"] = ref.issue or ""
        values["pages"] = (normalize_pages(ref.pages) or "").replace("-", "--")
        values["edition"] = ref.edition or ""
        values["isbn"] = ref.isbn or ""
        values["issn"] = ref.issn or ""
        values["doi"] = ref.doi or ""
        values["pmid"] = ref.pmid or ""
        values["language"] = ref.language or ""
        values["note"] = ref.notes or ""
        if options.include_urls:
            values["url"] = ref.url or ""
        if options.include_abstracts:
            values["abstract"] = ref.abstract or ""
        if options.include_keywords:
            values["keywords"] = ", ".join(ref.keyword_list)

        for name, value in extras.items():
            if name in PRIVATE_EXTRAS or name in values or not BIBTEX_FIELD.match(name):
                continue
            if isinstance(value, str | int):
                values[name] = str(value)
        return values

    def validate(self, content: str) -> None:
        if not content or not content.strip():
            raise EmptyContentError("BibTeX")
        if not ENTRY_MARKER.search(content):
            raise InvalidFormatError(
                "Content does not appear to be in BibTeX format", "bibtex"
            )
        opening, closing = _brace_counts(content)
        if opening != closing:
            raise UnbalancedBracesError(opening, closing)

    def count(self, content: str) -> int:
        return sum(
            1
            for match in ENTRY_START.finditer(content or "")
            if match.group(1).lower() not in SKIPPED_ENTRIES | {"string"}
        )

    def template(self, entry_type: str | None = None) -> str:
        """Return a skeleton entry listing the fields written for a type.

        Args:
            entry_type: A BibTeX entry type such as ``"book"`` or a canonical
                type such as ``"chapter"``. Defaults to ``"article"``.
        """
        name = (entry_type or "article").strip().lower()
        if name not in BIBTEX_TYPES:
            name = BIBTEX_EXPORT_TYPES[ReferenceType.coerce(name)]
        order = FIELD_ORDER.get(ORDER_ALIASES.get(name, name), FIELD_ORDER["misc"])

        lines = [f"@{name}{{key,"]
        lines.extend(f"    {field} = {{{TEMPLATE_VALUES[field]}}}," for field in order)
        lines[-1] = lines[-1][:-1]
        lines.append("}")
        return "\n".join(lines)
