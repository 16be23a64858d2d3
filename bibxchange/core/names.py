"""Person name parsing and conversion.

Names travel through the interchange layer in two shapes: a display string
such as ``"Smith, John; Doe, Jane"`` and an ordered tuple of :class:`Person`
values. The helpers here convert between them without reordering names.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

import msgspec

NAME_SEPARATOR = "; "

_LIST_SPLIT = re.compile(r"\s+and\s+|\s*&\s*", re.IGNORECASE)

SUFFIXES = {"jr", "jnr", "sr", "snr", "ii", "iii", "iv"}


class Person(msgspec.Struct, frozen=True, omit_defaults=True):
    """A single author or editor name."""

    family: str
    given: str | None = None
    suffix: str | None = None

    def display(self) -> str:
        """Render as ``"Family, Given"`` (``"Family, Jr, Given"`` with a suffix)."""
        if self.suffix and self.given:
            return f"{self.family}, {self.suffix}, {self.given}"
        if self.given:
            return f"{self.family}, {self.given}"
        return self.family

    def natural(self) -> str:
        """Render given name first."""
        parts = [self.given, self.family]
        name = " ".join(p for p in parts if p)
        return f"{name}, {self.suffix}" if self.suffix else name

    @classmethod
    def from_string(cls, name: str) -> "Person":
        """Parse a single name in any of the three BibTeX name orders.

        - 0 commas: "First von Last"
        - 1 comma: "von Last, First"
        - 2 commas: "von Last, Jr, First"

        "Last, First, Jr" and "First Last, Jr" are read with the suffix
        last. Names containing "and" or "&" are kept whole as corporate
        names.
        """
        name = " ".join(name.split())
        parts = [p.strip() for p in name.split(",")]

        if len(parts) == 2 and is_suffix(parts[1]):
            return msgspec.structs.replace(cls.from_string(parts[0]), suffix=parts[1])

        if len(parts) == 1:
            tokens = _tokenize(name)
            if len(tokens) <= 1 or any(t.lower() in ("and", "&") for t in tokens):
                return cls(family=name)
            von_start = None
            for i, token in enumerate(tokens[:-1]):
                if _starts_with_lowercase(token):
                    von_start = i
                    break
            if von_start is None:
                return cls(family=tokens[-1], given=" ".join(tokens[:-1]))
            if von_start == 0:
                return cls(family=name)
            return cls(
                family=" ".join(tokens[von_start:]),
                given=" ".join(tokens[:von_start]),
            )

        family = parts[0]
        if len(parts) == 2:
            return cls(family=family, given=parts[1] or None)
        if len(parts) == 3 and is_suffix(parts[2]) and not is_suffix(parts[1]):
            return cls(family=family, given=parts[1] or None, suffix=parts[2])
        return cls(
            family=family,
            suffix=parts[1] or None,
            given=", ".join(parts[2:]) or None,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Person":
        """Build from a ``{"family", "given"}`` style mapping."""
        family = data.get("family") or data.get("last") or data.get("literal") or ""
        given = data.get("given") or data.get("first") or None
        suffix = data.get("suffix") or None
        if not family and given:
            family, given = given, None
        return cls(family=str(family).strip(), given=given, suffix=suffix)


def _tokenize(name: str) -> list[str]:
    """Split a name on whitespace, keeping braced groups together."""
    tokens = []
    current = []
    depth = 0

    for char in name:
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        if char.isspace() and depth == 0:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))
    return tokens


def _starts_with_lowercase(word: str) -> bool:
    if word.startswith("{"):
        return False
    for char in word:
        if char.isalpha():
            return char.islower()
    return False


def is_suffix(piece: str) -> bool:
    """Return True for generational suffixes such as "Jr." or "III"."""
    return piece.strip().rstrip(".").lower() in SUFFIXES


def _split_comma_list(text: str) -> list[str]:
    """Disambiguate a comma separated list of names.

    "Smith, J." is one inverted name, "John Smith, Jane Doe" is two
    natural-order names and "Smith, J., Doe, A." is two inverted names.
    A suffix piece stays with its name, so "Smith, John, Jr." and
    "Smith, Jr., John" are each one name.
    """
    pieces = [p.strip() for p in text.split(",") if p.strip()]
    if len(pieces) <= 1:
        return pieces
    if any(is_suffix(p) for p in pieces):
        groups: list[list[str]] = []
        for piece in pieces:
            if groups and is_suffix(piece):
                groups[-1].append(piece)
            elif (
                groups
                and sum(not is_suffix(p) for p in groups[-1]) == 1
                and not (len(groups[-1][0].split()) > 1 and len(piece.split()) > 1)
            ):
                groups[-1].append(piece)
            else:
                groups.append([piece])
        return [", ".join(group) for group in groups]
    if all(len(p.split()) > 1 for p in pieces):
        return pieces
    if len(pieces) % 2 == 0:
        return [f"{pieces[i]}, {pieces[i + 1]}" for i in range(0, len(pieces), 2)]
    return pieces


def split_names(value: str | Iterable[Any] | None) -> list[str]:
    """Split an author or editor value into individual display names.

    Args:
        value: A name string using ``;``, ``and``, ``&`` or commas as
            separators, or a sequence of strings, mappings or Person values.

    Returns:
        Names in their original order.
    """
    if not value:
        return []

    if not isinstance(value, str):
        names = []
        for item in value:
            if isinstance(item, Person):
                names.append(item.display())
            elif isinstance(item, Mapping):
                person = Person.from_mapping(item)
                if person.family:
                    names.append(person.display())
            elif item is not None and str(item).strip():
                names.append(" ".join(str(item).split()))
        return names

    text = " ".join(value.split())
    if not text:
        return []
    if ";" in text:
        parts = text.split(";")
    elif _LIST_SPLIT.search(text):
        parts = _LIST_SPLIT.split(text)
    elif "," in text:
        parts = _split_comma_list(text)
    else:
        parts = [text]
    return [p.strip() for p in parts if p.strip()]


def parse_names(value: str | Iterable[Any] | None) -> tuple[Person, ...]:
    """Convert an author value to structured Person values."""
    if not value:
        return ()
    if not isinstance(value, str) and all(isinstance(v, Person) for v in value):
        return tuple(value)
    return tuple(Person.from_string(name) for name in split_names(value))


def format_names(value: str | Iterable[Any] | None) -> str:
    """Convert an author value to the canonical ``"Last, First; ..."`` string.

    A single name that would be split again when read back, such as
    ``"Barnes and Noble"``, keeps a trailing ``;`` to mark it as one name.
    """
    names = split_names(value)
    text = NAME_SEPARATOR.join(names)
    if len(names) == 1 and split_names(text) != names:
        return f"{text};"
    return text


def first_author(value: str | Iterable[Any] | None) -> str | None:
    """Return the first name in an author value."""
    names = split_names(value)
    return names[0] if names else None


def surname(name: str) -> str:
    """Return the family name of a single display name."""
    return Person.from_string(name).family


def _clean(text: str) -> str:
    return re.sub(r"[^\w\s]|[\d_]", "", text.casefold()).strip()


def authors_match(first: str, second: str) -> bool:
    """Compare two single author names for duplicate detection.

    Names match when they are identical after lowercasing and removing
    punctuation, or when their surnames share the same final token. Surnames
    of two characters or fewer never match on their own.
    """
    if not first or not second:
        return False
    if _clean(first) == _clean(second):
        return True

    first_tokens = _clean(surname(first)).split()
    second_tokens = _clean(surname(second)).split()
    if not first_tokens or not second_tokens:
        return False
    last = first_tokens[-1]
    return len(last) > 2 and last == second_tokens[-1]
