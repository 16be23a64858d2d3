"""Tests for JSON import and CSL-JSON export."""

import json

import pytest

from bibxchange import __version__
from bibxchange.core.fields import ReferenceType
from bibxchange.core.models import Reference
from bibxchange.core.names import Person
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import (
    EmptyContentError,
    InvalidFormatError,
    NoReferencesFoundError,
    ParseError,
)
from bibxchange.formats.csl import CslJsonFormat, from_csl, to_csl

CSL_ITEM = {
    "type": "article-journal",
    "title": "A Study",
    "author": [{"family": "Doe", "given": "Jane"}, {"family": "Roe"}],
    "issued": {"date-parts": [[2020, 5]]},
    "container-title": "Journal of Science",
    "page": "1–9",
    "DOI": "https://doi.org/10.1/x",
    "keyword": "a, b",
}


@pytest.fixture
def handler():
    return CslJsonFormat()


class TestFromCsl:
    """Test mapping CSL items onto references."""

    def test_journal_item(self):
        """CSL variables map onto canonical fields."""
        ref = from_csl(CSL_ITEM)
        assert ref.type is ReferenceType.JOURNAL
        assert ref.title == "A Study"
        assert ref.author == (Person("Doe", "Jane"), Person("Roe"))
        assert ref.year == 2020
        assert ref.journal == "Journal of Science"
        assert ref.pages == "1-9"
        assert ref.doi == "10.1/x"
        assert ref.keywords == "a, b"

    def test_container_for_books(self):
        """Non-serial containers become the publication."""
        ref = from_csl({"type": "chapter", "title": "C", "container-title": "Book"})
        assert ref.type is ReferenceType.CHAPTER
        assert ref.publication == "Book"
        assert ref.journal is None

    def test_canonical_field_map(self):
        """Plain reference maps are accepted too."""
        item = {"type": "book", "title": "T", "author": "Roe, R.", "year": 2019}
        ref = from_csl(item)
        assert ref.type is ReferenceType.BOOK
        assert ref.author == "Roe, R."
        assert ref.year == 2019

    def test_unknown_type(self):
        """Unmapped type labels are preserved in extras."""
        ref = from_csl({"type": "sculpture", "title": "T"})
        assert ref.type is ReferenceType.OTHER
        assert ref.extras == {"csl_type": "sculpture"}

    def test_unreadable_issued(self):
        """Dates without a year are kept as raw values."""
        ref = from_csl({"title": "T", "issued": {"raw": "someday"}})
        assert ref.year is None
        assert ref.extras == {"date": {"raw": "someday"}}

    def test_raw_issued(self):
        """Raw date strings provide the year."""
        assert from_csl({"title": "T", "issued": {"raw": "Spring 2018"}}).year == 2018


class TestParse:
    """Test reading JSON documents."""

    @pytest.mark.parametrize(
        "content",
        [
            '{"items": [{"title": "A"}]}',
            '{"references": [{"title": "A"}]}',
            '{"entries": [{"title": "A"}]}',
            '[{"title": "A"}]',
            '{"title": "A"}',
        ],
    )
    def test_wrappers(self, handler, content):
        """Items are found in every supported wrapper."""
        assert [ref.title for ref in handler.parse(content)] == ["A"]

    def test_invalid_json(self, handler):
        """Syntax errors are parse errors."""
        with pytest.raises(ParseError):
            handler.parse("{not json")

    def test_wrong_shape(self, handler):
        """Scalars are not reference data."""
        with pytest.raises(InvalidFormatError):
            handler.parse('"just a string"')

    def test_no_objects(self, handler):
        """Arrays without objects yield no references."""
        with pytest.raises(NoReferencesFoundError):
            handler.parse("[1, 2]")

    def test_empty(self, handler):
        """Blank input is rejected."""
        with pytest.raises(EmptyContentError):
            handler.parse(" ")

    def test_parse_data(self, handler):
        """Decoded data is accepted directly."""
        refs = handler.parse_data([{"title": "A"}, {"title": "B"}])
        assert [ref.title for ref in refs] == ["A", "B"]


class TestExport:
    """Test writing CSL-JSON documents."""

    def test_envelope(self, handler):
        """Items are wrapped with export metadata."""
        refs = [Reference(title="A"), Reference(title="B", extras={"id": 7})]
        data = json.loads(handler.export(refs))

        info = data["export_info"]
        assert info["format"] == "json"
        assert info["total_references"] == 2
        assert info["exported_by"] == f"bibxchange {__version__}"
        assert info["options"]["include_abstracts"] is True
        assert [item["id"] for item in data["references"]] == ["ref_1", "ref_7"]

    def test_exported_by_option(self, handler):
        """The exporting tool can be named."""
        options = ExportOptions(exported_by="My Library")
        data = json.loads(handler.export([Reference(title="A")], options))
        assert data["export_info"]["exported_by"] == "My Library"

    def test_to_csl(self, journal_reference):
        """References map onto CSL variables without empty values."""
        item = to_csl(journal_reference, 1, ExportOptions())
        assert item["type"] == "article-journal"
        assert item["author"] == [
            {"family": "Doe", "given": "Jane"},
            {"family": "Smith", "given": "John"},
        ]
        assert item["issued"] == {"date-parts": [[2021]]}
        assert item["container-title"] == "Journal of Climate"
        assert item["page"] == "123-145"
        assert item["DOI"] == "10.1000/climate.2021"
        assert item["keyword"] == "climate, models"
        assert "editor" not in item

    def test_exclusions(self, journal_reference):
        """Abstracts, keywords and URLs can be left out."""
        options = ExportOptions(
            include_abstracts=False, include_keywords=False, include_urls=False
        )
        item = to_csl(journal_reference, 1, options)
        assert "abstract" not in item
        assert "keyword" not in item
        assert "URL" not in item

    def test_non_ascii_kept(self, handler):
        """Unicode text is written as is."""
        output = handler.export([Reference(title="Über Wasser")])
        assert "Über Wasser" in output

    def test_round_trip(self, handler, journal_reference):
        """Exported items parse back into the same values."""
        ref = handler.parse(handler.export([journal_reference]))[0]
        assert ref.type is ReferenceType.JOURNAL
        assert ref.title == journal_reference.title
        assert ref.authors == journal_reference.authors
        assert ref.year == 2021
        assert ref.journal == journal_reference.journal
        assert ref.pages == journal_reference.pages


class TestValidation:
    """Test structural checks."""

    def test_validate_invalid_json(self, handler):
        """Syntax errors fail validation."""
        with pytest.raises(InvalidFormatError, match="Invalid JSON"):
            handler.validate("{")

    def test_count(self, handler):
        """Only objects are counted."""
        assert handler.count('{"items": [{"title": "A"}, 3, {"title": "B"}]}') == 2
        assert handler.count("{") == 0
