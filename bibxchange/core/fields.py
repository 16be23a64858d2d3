"""Reference type taxonomy and format lookup tables.

Every table that maps canonical types out to a format is checked for
completeness when this module is imported, so a missing entry fails loudly
instead of silently falling back to a default at export time.
"""

from enum import Enum, unique


@unique
class ReferenceType(Enum):
    """Canonical reference types."""

    JOURNAL = "journal"
    BOOK = "book"
    CHAPTER = "chapter"
    CONFERENCE = "conference"
    THESIS = "thesis"
    REPORT = "report"
    WEBSITE = "website"
    NEWSPAPER = "newspaper"
    MAGAZINE = "magazine"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: "ReferenceType | str | None") -> "ReferenceType":
        """Return the canonical type for a value, defaulting to OTHER."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.OTHER
        key = str(value).strip().lower()
        try:
            return cls(key)
        except ValueError:
            return TYPE_ALIASES.get(key, cls.OTHER)


# RIS type codes. Each code maps to exactly one canonical type.
RIS_TYPES: dict[str, ReferenceType] = {
    "JOUR": ReferenceType.JOURNAL,
    "EJOUR": ReferenceType.JOURNAL,
    "JFULL": ReferenceType.JOURNAL,
    "ABST": ReferenceType.JOURNAL,
    "INPR": ReferenceType.JOURNAL,
    "BOOK": ReferenceType.BOOK,
    "EBOOK": ReferenceType.BOOK,
    "EDBOOK": ReferenceType.BOOK,
    "ENCYC": ReferenceType.BOOK,
    "DICT": ReferenceType.BOOK,
    "CHAP": ReferenceType.CHAPTER,
    "ECHAP": ReferenceType.CHAPTER,
    "CONF": ReferenceType.CONFERENCE,
    "CPAPER": ReferenceType.CONFERENCE,
    "THES": ReferenceType.THESIS,
    "RPRT": ReferenceType.REPORT,
    "GOVDOC": ReferenceType.REPORT,
    "STAND": ReferenceType.REPORT,
    "ELEC": ReferenceType.WEBSITE,
    "BLOG": ReferenceType.WEBSITE,
    "ICOMM": ReferenceType.WEBSITE,
    "NEWS": ReferenceType.NEWSPAPER,
    "MGZN": ReferenceType.MAGAZINE,
    "GEN": ReferenceType.OTHER,
    "UNPB": ReferenceType.OTHER,
    "COMP": ReferenceType.OTHER,
    "DATA": ReferenceType.OTHER,
    "PAT": ReferenceType.OTHER,
    "PAMP": ReferenceType.OTHER,
    "MAP": ReferenceType.OTHER,
    "ART": ReferenceType.OTHER,
    "SER": ReferenceType.OTHER,
}

RIS_EXPORT_TYPES: dict[ReferenceType, str] = {
    ReferenceType.JOURNAL: "JOUR",
    ReferenceType.BOOK: "BOOK",
    ReferenceType.CHAPTER: "CHAP",
    ReferenceType.CONFERENCE: "CONF",
    ReferenceType.THESIS: "THES",
    ReferenceType.REPORT: "RPRT",
    ReferenceType.WEBSITE: "ELEC",
    ReferenceType.NEWSPAPER: "NEWS",
    ReferenceType.MAGAZINE: "MGZN",
    ReferenceType.OTHER: "GEN",
}

BIBTEX_TYPES: dict[str, ReferenceType] = {
    "article": ReferenceType.JOURNAL,
    "book": ReferenceType.BOOK,
    "inbook": ReferenceType.CHAPTER,
    "incollection": ReferenceType.CHAPTER,
    "inproceedings": ReferenceType.CONFERENCE,
    "conference": ReferenceType.CONFERENCE,
    "proceedings": ReferenceType.CONFERENCE,
    "phdthesis": ReferenceType.THESIS,
    "mastersthesis": ReferenceType.THESIS,
    "thesis": ReferenceType.THESIS,
    "techreport": ReferenceType.REPORT,
    "manual": ReferenceType.REPORT,
    "report": ReferenceType.REPORT,
    "online": ReferenceType.WEBSITE,
    "electronic": ReferenceType.WEBSITE,
    "www": ReferenceType.WEBSITE,
    "booklet": ReferenceType.OTHER,
    "unpublished": ReferenceType.OTHER,
    "misc": ReferenceType.OTHER,
}

BIBTEX_EXPORT_TYPES: dict[ReferenceType, str] = {
    ReferenceType.JOURNAL: "article",
    ReferenceType.BOOK: "book",
    ReferenceType.CHAPTER: "incollection",
    ReferenceType.CONFERENCE: "inproceedings",
    ReferenceType.THESIS: "phdthesis",
    ReferenceType.REPORT: "techreport",
    ReferenceType.WEBSITE: "misc",
    ReferenceType.NEWSPAPER: "article",
    ReferenceType.MAGAZINE: "article",
    ReferenceType.OTHER: "misc",
}

# Human labels found in spreadsheets and JSON exports, lowercased.
TYPE_ALIASES: dict[str, ReferenceType] = {
    "journal article": ReferenceType.JOURNAL,
    "article": ReferenceType.JOURNAL,
    "paper": ReferenceType.JOURNAL,
    "article-journal": ReferenceType.JOURNAL,
    "book chapter": ReferenceType.CHAPTER,
    "chapter": ReferenceType.CHAPTER,
    "conference paper": ReferenceType.CONFERENCE,
    "proceedings": ReferenceType.CONFERENCE,
    "paper-conference": ReferenceType.CONFERENCE,
    "dissertation": ReferenceType.THESIS,
    "phd thesis": ReferenceType.THESIS,
    "masters thesis": ReferenceType.THESIS,
    "technical report": ReferenceType.REPORT,
    "web page": ReferenceType.WEBSITE,
    "webpage": ReferenceType.WEBSITE,
    "online": ReferenceType.WEBSITE,
    "news": ReferenceType.NEWSPAPER,
    "newspaper article": ReferenceType.NEWSPAPER,
    "article-newspaper": ReferenceType.NEWSPAPER,
    "magazine article": ReferenceType.MAGAZINE,
    "article-magazine": ReferenceType.MAGAZINE,
}

CSL_TYPES: dict[ReferenceType, str] = {
    ReferenceType.JOURNAL: "article-journal",
    ReferenceType.BOOK: "book",
    ReferenceType.CHAPTER: "chapter",
    ReferenceType.CONFERENCE: "paper-conference",
    ReferenceType.THESIS: "thesis",
    ReferenceType.REPORT: "report",
    ReferenceType.WEBSITE: "webpage",
    ReferenceType.NEWSPAPER: "article-newspaper",
    ReferenceType.MAGAZINE: "article-magazine",
    ReferenceType.OTHER: "article",
}

CSL_IMPORT_TYPES: dict[str, ReferenceType] = {
    **{csl: ref_type for ref_type, csl in CSL_TYPES.items()},
    "post-weblog": ReferenceType.WEBSITE,
    "post": ReferenceType.WEBSITE,
    "manuscript": ReferenceType.OTHER,
    "entry-encyclopedia": ReferenceType.CHAPTER,
    "entry-dictionary": ReferenceType.CHAPTER,
}

# CSV column labels in export order.
CSV_HEADERS: dict[str, str] = {
    "id": "ID",
    "type": "Type",
    "title": "Title",
    "author": "Author",
    "editor": "Editor",
    "year": "Year",
    "publication": "Publication",
    "journal": "Journal",
    "publisher": "Publisher",
    "volume": "Volume",
    "issue": "Issue",
    "pages": "Pages",
    "doi": "DOI",
    "pmid": "PMID",
    "isbn": "ISBN",
    "issn": "ISSN",
    "url": "URL",
    "abstract": "Abstract",
    "keywords": "Keywords",
    "language": "Language",
    "location": "Location",
    "edition": "Edition",
    "notes": "Notes",
}

CSV_HEADER_ALIASES: dict[str, str] = {
    "authors": "author",
    "editors": "editor",
    "publication_year": "year",
    "date": "year",
    "journal_name": "journal",
    "journal_title": "journal",
    "container_title": "publication",
    "book_title": "publication",
    "booktitle": "publication",
    "number": "issue",
    "page_range": "pages",
    "page": "pages",
    "link": "url",
    "summary": "abstract",
    "tags": "keywords",
    "place": "location",
    "address": "location",
    "note": "notes",
    "reference_type": "type",
}


def _require_complete(name: str, table: dict[ReferenceType, str]) -> None:
    missing = [t.value for t in ReferenceType if t not in table]
    if missing:
        raise RuntimeError(f"{name} has no entry for: {', '.join(missing)}")


for _name, _table in (
    ("RIS_EXPORT_TYPES", RIS_EXPORT_TYPES),
    ("BIBTEX_EXPORT_TYPES", BIBTEX_EXPORT_TYPES),
    ("CSL_TYPES", CSL_TYPES),
):
    _require_complete(_name, _table)
