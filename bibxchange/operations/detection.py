"""Format detection for imported files and raw content."""

import json
import logging
import re
from pathlib import Path

from bibxchange.exceptions import UnsupportedFormatError
from bibxchange.formats.base import Format

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "ris": Format.RIS,
    "bib": Format.BIBTEX,
    "bibtex": Format.BIBTEX,
    "csv": Format.CSV,
    "json": Format.JSON,
}

RIS_PATTERN = re.compile(r"^TY  -", re.MULTILINE)
BIBTEX_PATTERN = re.compile(r"@\w+\s*\{")
CSV_PATTERN = re.compile(r"^[^,\r\n]+,")


def _looks_like_json(content: str) -> bool:
    text = content.lstrip(" \t\r\n")
    if not text.startswith(("{", "[")):
        return False
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return False
    return isinstance(data, dict | list)


def sniff_format(content: str) -> Format | None:
    """Guess a format from content alone.

    RIS and BibTeX markers are checked first. JSON is tried before the CSV
    pattern because a JSON array line also starts with text and a comma.
    """
    if not content or not content.strip():
        return None
    content = content.lstrip("\ufeff")
    if RIS_PATTERN.search(content):
        return Format.RIS
    if BIBTEX_PATTERN.search(content):
        return Format.BIBTEX
    if _looks_like_json(content):
        return Format.JSON
    first_line = content.lstrip("\r\n").split("\n", 1)[0]
    if CSV_PATTERN.match(first_line):
        return Format.CSV
    return None


def detect_format(
    path: Path | str | None = None, content: str | None = None
) -> Format:
    """Determine the format of a file or content string.

    Args:
        path: File whose extension is checked first.
        content: Text to sniff. Read from ``path`` when not given.

    Returns:
        The detected format.

    Raises:
        UnsupportedFormatError: If no format can be determined.
    """
    if path is not None:
        path = Path(path)
        fmt = EXTENSIONS.get(path.suffix.lower().lstrip("."))
        if fmt is not None:
            logger.debug(f"Detected {fmt.value} from extension of {path.name}")
            return fmt
        if content is None and path.is_file():
            content = path.read_text(encoding="utf-8")

    fmt = sniff_format(content or "")
    if fmt is None:
        raise UnsupportedFormatError(None)
    logger.debug(f"Detected {fmt.value} from content")
    return fmt
