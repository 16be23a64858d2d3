"""Tests for the canonical Reference model."""

import pytest

from bibxchange.core.fields import ReferenceType
from bibxchange.core.models import Reference
from bibxchange.core.names import Person


class TestReference:
    """Test Reference construction and derived values."""

    def test_defaults(self):
        """A bare reference is of type OTHER with no values."""
        ref = Reference()
        assert ref.type is ReferenceType.OTHER
        assert ref.title is None
        assert ref.authors == ()

    def test_immutable(self, journal_reference):
        """Fields cannot be assigned."""
        with pytest.raises(AttributeError):
            journal_reference.title = "Changed"

    def test_authors_from_string(self, journal_reference):
        """String authors are exposed as Person values in order."""
        assert journal_reference.authors == (
            Person("Doe", "Jane"),
            Person("Smith", "John"),
        )

    def test_author_string_from_persons(self):
        """Person tuples render as the canonical string."""
        ref = Reference(author=(Person("Doe", "Jane"), Person("Roe", "R.")))
        assert ref.author_string == "Doe, Jane; Roe, R."

    def test_container(self):
        """The journal wins over the container title."""
        assert Reference(publication="Proceedings").container == "Proceedings"
        assert Reference(journal="J", publication="P").container == "J"

    def test_keyword_list(self):
        """Keywords are available as a list for both shapes."""
        assert Reference(keywords="a, b").keyword_list == ["a", "b"]
        assert Reference(keywords=("a", "b")).keyword_list == ["a", "b"]

    def test_replace(self, journal_reference):
        """replace returns a modified copy."""
        changed = journal_reference.replace(title="Other")
        assert changed.title == "Other"
        assert journal_reference.title == "Climate Models"

    def test_with_extras(self):
        """Passthrough values merge into extras."""
        ref = Reference(extras={"a": 1}).with_extras(b=2)
        assert ref.extras == {"a": 1, "b": 2}
        assert ref.extra("b") == 2
        assert ref.extra("missing", "default") == "default"

    def test_stripped(self):
        """Blank strings and empty collections become None."""
        ref = Reference(title="  ", volume="", keywords=(), extras={"x": "", "y": 1})
        stripped = ref.stripped()
        assert stripped.title is None
        assert stripped.volume is None
        assert stripped.keywords is None
        assert stripped.extras == {"y": 1}

    def test_to_dict(self):
        """Only non-empty values are kept."""
        ref = Reference(title="T", year=2020)
        assert ref.to_dict() == {"type": "other", "title": "T", "year": 2020}


class TestRecordFields:
    """Test conversion to and from store field mappings."""

    def test_to_record_fields(self):
        """Names and keywords flatten to strings."""
        ref = Reference(
            type=ReferenceType.JOURNAL,
            title="T",
            author=(Person("Doe", "Jane"),),
            year=2021,
            keywords=("a", "b"),
            extras={"M3": "x"},
        )
        assert ref.to_record_fields() == {
            "type": "journal",
            "title": "T",
            "author": "Doe, Jane",
            "year": 2021,
            "keywords": "a, b",
            "extras": {"M3": "x"},
        }

    def test_from_dict(self):
        """Types, names, years and keywords are coerced."""
        ref = Reference.from_dict(
            {
                "type": "Journal Article",
                "title": "T",
                "author": ["Smith, John", "Doe, Jane"],
                "year": "2021",
                "keywords": ["a", "b"],
                "publisher_city": "Oslo",
            }
        )
        assert ref.type is ReferenceType.JOURNAL
        assert ref.author == "Smith, John; Doe, Jane"
        assert ref.year == 2021
        assert ref.keywords == ("a", "b")
        assert ref.extras == {"publisher_city": "Oslo"}

    def test_from_dict_unreadable_year(self):
        """A year without digits is kept as a raw date."""
        ref = Reference.from_dict({"title": "T", "year": "n.d."})
        assert ref.year is None
        assert ref.extras == {"date": "n.d."}

    def test_from_dict_name_mappings(self):
        """Structured names become Person tuples."""
        ref = Reference.from_dict({"author": [{"family": "Doe", "given": "Jane"}]})
        assert ref.author == (Person("Doe", "Jane"),)

    def test_record_fields_round_trip(self):
        """A reference survives conversion to store fields and back."""
        ref = Reference(
            type=ReferenceType.JOURNAL,
            title="T",
            author="Doe, Jane",
            year=2021,
            journal="J",
            keywords="a, b",
            extras={"M3": "x"},
        )
        assert Reference.from_dict(ref.to_record_fields()) == ref
