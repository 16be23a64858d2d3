"""Value cleaning rules shared by every parser and serializer.

All cleaners accept raw text (or None) and return the cleaned value, or None
when nothing usable remains. Each one is idempotent: cleaning an already
clean value returns it unchanged.
"""

import html
import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlsplit

YEAR_PATTERN = re.compile(r"\d{4}")
DOI_PREFIX = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE)
PMID_PATTERN = re.compile(r"\d{7,8}")
KEYWORD_SPLIT = re.compile(r"[,;|]")
PAGE_DASH = re.compile(r"\s*(?:-{1,3}|–|—)\s*")
HTML_TAG = re.compile(r"<[^>]+>")

URL_SCHEMES = {"http", "https", "ftp"}


def clean_text(value: Any) -> str | None:
    """Collapse runs of whitespace and trim."""
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def extract_year(value: Any) -> int | None:
    """Return the first four digit run of a date-like value as an integer."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 < value < 10000 else None
    match = YEAR_PATTERN.search(str(value))
    return int(match.group()) if match else None


def is_valid_date(value: Any) -> bool:
    """Check whether a value can be read as a date.

    Accepts year integers, date strings containing a year, and CSL date
    objects carrying ``date-parts`` (or a ``raw``/``literal`` string).
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return extract_year(value) is not None
    if isinstance(value, str):
        return extract_year(value) is not None
    if isinstance(value, Mapping):
        parts = value.get("date-parts")
        if parts:
            try:
                return extract_year(int(parts[0][0])) is not None
            except (TypeError, ValueError, IndexError, KeyError):
                return False
        text = value.get("raw") or value.get("literal")
        return isinstance(text, str) and extract_year(text) is not None
    return False


def clean_doi(value: Any) -> str | None:
    """Strip resolver URLs and ``doi:`` prefixes from a DOI."""
    text = clean_text(value)
    if not text:
        return None
    while True:
        stripped = DOI_PREFIX.sub("", text).strip()
        if stripped == text:
            break
        text = stripped
    return text or None


def clean_pmid(value: Any) -> str | None:
    """Extract a PubMed identifier, falling back to the trimmed input."""
    text = clean_text(value)
    if not text:
        return None
    match = PMID_PATTERN.search(text)
    return match.group() if match else text


def clean_isbn(value: Any) -> str | None:
    """Keep only digits and the X check character."""
    text = clean_text(value)
    if not text:
        return None
    return re.sub(r"[^0-9X]", "", text.upper()) or None


def clean_url(value: Any) -> str | None:
    """Return the URL when it is absolute and well formed, else None."""
    text = clean_text(value)
    if not text or " " in text:
        return None
    try:
        parts = urlsplit(text)
    except ValueError:
        return None
    if parts.scheme.lower() not in URL_SCHEMES or not parts.netloc:
        return None
    return text


def split_keywords(value: Any) -> list[str]:
    """Split keywords given as delimited text or as a sequence."""
    if not value:
        return []
    if isinstance(value, str):
        items = KEYWORD_SPLIT.split(value)
    elif isinstance(value, Iterable):
        items = [part for item in value for part in KEYWORD_SPLIT.split(str(item))]
    else:
        items = [str(value)]
    return [k for k in (clean_text(item) for item in items) if k]


def clean_keywords(value: Any) -> str | None:
    """Normalize keywords to a ``", "`` joined string."""
    return ", ".join(split_keywords(value)) or None


def normalize_pages(value: Any) -> str | None:
    """Normalize a page range to the internal ``start-end`` form."""
    text = clean_text(value)
    if not text:
        return None
    return PAGE_DASH.sub("-", text)


def split_pages(value: Any) -> tuple[str | None, str | None]:
    """Split a page range into start and end pages."""
    text = normalize_pages(value)
    if not text:
        return None, None
    start, sep, end = text.partition("-")
    if not sep:
        return text, None
    return start or None, end or None


def join_pages(start: Any, end: Any) -> str | None:
    """Join start and end pages, collapsing identical or missing ends."""
    start = clean_text(start)
    end = clean_text(end)
    if start and end and start != end:
        return f"{start}-{end}"
    return start or end


def strip_html(value: Any) -> str | None:
    """Remove markup tags and decode entities."""
    if value is None:
        return None
    return clean_text(html.unescape(HTML_TAG.sub(" ", str(value))))


def truncate_text(value: str, limit: int, suffix: str = "...") -> str:
    """Shorten text to at most ``limit`` characters on a word boundary.

    Args:
        value: Text to shorten.
        limit: Maximum length of the result, suffix included.
        suffix: Marker appended when the text was shortened.

    Returns:
        The original text if it fits, otherwise a shortened copy.
    """
    if len(value) <= limit:
        return value
    if limit <= len(suffix):
        return value[:limit]

    cut = value[: limit - len(suffix)]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    return cut.rstrip() + suffix


def wrap_text(value: str, width: int) -> list[str]:
    """Wrap text on word boundaries so no line exceeds ``width``.

    Words longer than ``width`` are split across lines.
    """
    if width < 1:
        raise ValueError("width must be positive")

    lines: list[str] = []
    current = ""
    for word in value.split():
        while len(word) > width:
            if current:
                lines.append(current)
                current = ""
            lines.append(word[:width])
            word = word[width:]
        if not word:
            continue
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines
