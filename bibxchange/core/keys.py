"""BibTeX citation key generation.

Keys follow the ``{surname}{year}{titleword}`` pattern, e.g. ``doe2021climate``
for Jane Doe's 2021 paper "Climate Models".
"""

import re
import time
import unicodedata
from collections.abc import Callable
from enum import Enum, auto

from .models import Reference
from .names import first_author, surname


class KeyCollisionStrategy(Enum):
    """Strategies for handling key collisions."""

    APPEND_LETTER = auto()  # smith2024 -> smith2024a, smith2024b
    APPEND_NUMBER = auto()  # smith2024 -> smith2024_1, smith2024_2


STOPWORDS = {
    "a",
    "an",
    "and",
    "as",
    "at",
    "by",
    "for",
    "from",
    "in",
    "of",
    "on",
    "or",
    "the",
    "to",
    "with",
    "about",
    "after",
    "before",
    "between",
    "during",
    "through",
    "under",
    "over",
    "into",
    "onto",
}

_TRANSLITERATIONS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "Ä": "Ae",
    "Ö": "Oe",
    "Ü": "Ue",
    "ß": "ss",
    "æ": "ae",
    "ø": "o",
    "å": "a",
    "Æ": "AE",
    "Ø": "O",
    "Å": "A",
}


def transliterate(text: str) -> str:
    """Transliterate Unicode to ASCII."""
    for old, new in _TRANSLITERATIONS.items():
        text = text.replace(old, new)
    nfd = unicodedata.normalize("NFD", text)
    return "".join(char for char in nfd if unicodedata.category(char) != "Mn")


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", transliterate(text).lower())


class CitationKeyGenerator:
    """Generate citation keys and keep them unique within one export."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        collision_strategy: KeyCollisionStrategy = KeyCollisionStrategy.APPEND_LETTER,
    ):
        """Initialize key generator.

        Args:
            clock: Source of the timestamp used for fallback keys
            collision_strategy: How to disambiguate repeated keys
        """
        self.clock = clock
        self.collision_strategy = collision_strategy
        self._used: set[str] = set()

    def base_key(self, reference: Reference) -> str:
        """Build the key for a reference without checking for collisions."""
        author = first_author(reference.author) or first_author(reference.editor)
        last = _slug(surname(author)) if author else ""
        word = self.title_word(reference.title)

        if not last and not word:
            return f"ref{int(self.clock())}"

        year = str(reference.year) if reference.year else ""
        return f"{last}{year}{word}" if last else f"{word}{year}"

    @staticmethod
    def title_word(title: str | None) -> str:
        """First title word longer than two characters that is not a stopword."""
        if not title:
            return ""
        for word in re.findall(r"[^\W_]+", title):
            slug = _slug(word)
            if len(slug) > 2 and slug not in STOPWORDS:
                return slug
        return ""

    def generate(self, reference: Reference) -> str:
        """Return the reference's key, generating one when absent.

        The returned key is unique among keys handed out by this generator.
        """
        key = reference.citation_key or self.base_key(reference)
        return self.claim(key)

    def claim(self, key: str) -> str:
        """Reserve a key, disambiguating it when already taken."""
        candidate = key
        if candidate in self._used:
            candidate = self._resolve_collision(key)
        self._used.add(candidate)
        return candidate

    def _resolve_collision(self, base_key: str) -> str:
        match self.collision_strategy:
            case KeyCollisionStrategy.APPEND_LETTER:
                for suffix in "abcdefghijklmnopqrstuvwxyz":
                    candidate = f"{base_key}{suffix}"
                    if candidate not in self._used:
                        return candidate
                return self._append_number(base_key)
            case KeyCollisionStrategy.APPEND_NUMBER:
                return self._append_number(base_key)

    def _append_number(self, base_key: str) -> str:
        counter = 1
        while f"{base_key}_{counter}" in self._used:
            counter += 1
        return f"{base_key}_{counter}"
