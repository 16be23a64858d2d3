"""Tests for RIS parsing and generation."""

import pytest

from bibxchange.core.fields import ReferenceType
from bibxchange.core.models import Reference
from bibxchange.core.names import Person
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import (
    EmptyContentError,
    InvalidFormatError,
    NoReferencesFoundError,
)
from bibxchange.formats.ris import RisFormat


@pytest.fixture
def handler():
    return RisFormat()


class TestParse:
    """Test reading RIS records."""

    def test_parse_sample(self, handler, sample_ris):
        """Tags map onto canonical fields."""
        first, second = handler.parse(sample_ris)

        assert first.type is ReferenceType.JOURNAL
        assert first.title == "A Study of Things"
        assert first.author == "Smith, John; Doe, Jane"
        assert first.journal == "Journal of Science"
        assert first.year == 2021
        assert first.volume == "12"
        assert first.issue == "3"
        assert first.pages == "123-145"
        assert first.doi == "10.1000/xyz"
        assert first.keywords == "alpha, beta"
        assert first.ris_type == "JOUR"

        assert second.type is ReferenceType.BOOK
        assert second.publisher == "Example Press"
        assert second.location == "Oslo"
        assert second.isbn == "9780306406157"

    def test_continuation_lines(self, handler, sample_ris):
        """Untagged lines continue the previous value."""
        first = handler.parse(sample_ris)[0]
        assert first.abstract == "The first part of the abstract continues here."

    def test_unknown_tags_kept(self, handler, sample_ris):
        """Tags without a canonical field are kept in extras."""
        first = handler.parse(sample_ris)[0]
        assert first.extras == {"M3": "Custom value"}

    def test_missing_end_tag(self, handler):
        """A final record without ER is still returned."""
        refs = handler.parse("TY  - JOUR\nTI  - Unterminated\n")
        assert [ref.title for ref in refs] == ["Unterminated"]

    def test_new_type_closes_record(self, handler):
        """A TY line opens a new record even without ER."""
        content = "TY  - JOUR\nTI  - One\nTY  - BOOK\nTI  - Two\nER  - \n"
        refs = handler.parse(content)
        assert [ref.title for ref in refs] == ["One", "Two"]

    def test_unknown_type_code(self, handler):
        """Unknown type codes become OTHER."""
        ref = handler.parse("TY  - XYZ\nTI  - T\nER  - \n")[0]
        assert ref.type is ReferenceType.OTHER

    def test_issn_and_isbn(self, handler):
        """SN values are told apart by shape."""
        content = "TY  - JOUR\nSN  - 1234-567X\nSN  - 0-8044-2957-X\nER  - \n"
        ref = handler.parse(content)[0]
        assert ref.issn == "1234-567X"
        assert ref.isbn == "080442957X"

    def test_unreadable_year(self, handler):
        """A date without a year is kept as raw text."""
        ref = handler.parse("TY  - GEN\nTI  - T\nPY  - in press\nER  - \n")[0]
        assert ref.year is None
        assert ref.extras == {"date": "in press"}

    def test_empty_content(self, handler):
        """Blank input is rejected."""
        with pytest.raises(EmptyContentError):
            handler.parse("  \n")

    def test_no_records(self, handler):
        """Content without a TY line yields no references."""
        with pytest.raises(NoReferencesFoundError):
            handler.parse("TI  - Orphan\nER  - \n")


class TestExport:
    """Test writing RIS records."""

    def test_exact_output(self, handler, bare_options):
        """Records list tags in a fixed order and end with ER."""
        ref = Reference(
            type=ReferenceType.JOURNAL,
            title="T",
            author="Smith, John; Doe, Jane",
            journal="J",
            year=2021,
            pages="123-145",
        )
        assert handler.export([ref], bare_options) == (
            "TY  - JOUR\n"
            "AU  - Smith, John\n"
            "AU  - Doe, Jane\n"
            "TI  - T\n"
            "JO  - J\n"
            "PY  - 2021\n"
            "SP  - 123\n"
            "EP  - 145\n"
            "ER  - \n"
        )

    def test_scenario_round_trip(self, handler, bare_options):
        """A minimal journal record is read and written back line for line."""
        content = "TY  - JOUR\nAU  - Smith, J.\nTI  - A Study\nPY  - 2020\nER  - "
        ref = handler.parse(content)[0]

        assert ref.type is ReferenceType.JOURNAL
        assert ref.author == "Smith, J."
        assert ref.title == "A Study"
        assert ref.year == 2020
        assert handler.export([ref], bare_options) == (
            "TY  - JOUR\n"
            "AU  - Smith, J.\n"
            "TI  - A Study\n"
            "PY  - 2020\n"
            "ER  - \n"
        )

    def test_suffix_author_round_trip(self, handler, bare_options):
        """An author with a suffix stays one AU line."""
        content = "TY  - JOUR\nAU  - Smith, John, Jr.\nTI  - A Study\nER  - \n"
        ref = handler.parse(content)[0]
        output = handler.export([ref], bare_options)

        assert output.count("AU  - ") == 1
        assert "AU  - Smith, John, Jr.\n" in output
        again = handler.parse(output)[0]
        assert again.author == ref.author
        assert again.authors == (Person("Smith", "John", "Jr."),)

    def test_header(self, handler, journal_reference):
        """The default header names the tool and the record count."""
        output = handler.export([journal_reference])
        assert output.startswith("# Exported by bibxchange on ")
        assert "# Total references: 1" in output

    def test_round_trip(self, handler, sample_ris):
        """Parsed references survive export and parse."""
        refs = handler.parse(sample_ris)
        assert handler.parse(handler.export(refs)) == refs

    def test_long_abstract_wraps(self, handler):
        """Abstracts wrap with indented continuation lines."""
        ref = Reference(title="T", abstract="word " * 10)
        options = ExportOptions(include_header=False, ris_line_length=20)
        lines = handler.export([ref], options).splitlines()
        abstract = [line for line in lines if line.startswith(("AB", "      "))]
        assert len(abstract) > 1
        assert abstract[1].startswith("      word")
        assert handler.parse("\n".join(lines))[0].abstract == ref.abstract.strip()

    def test_wrapped_line_that_looks_like_a_tag(self, handler):
        """Indented continuations are never read as new tags."""
        ref = Reference(title="T", abstract="alpha beta gamma UK - based study here")
        options = ExportOptions(include_header=False, ris_line_length=17)
        output = handler.export([ref], options)

        assert "\n      UK - based study\n" in output
        again = handler.parse(output)[0]
        assert again.abstract == ref.abstract
        assert "UK" not in (again.extras or {})

    def test_exclusions(self, handler, journal_reference):
        """Abstracts, keywords and URLs can be left out."""
        options = ExportOptions(
            include_header=False,
            include_abstracts=False,
            include_keywords=False,
            include_urls=False,
        )
        output = handler.export([journal_reference], options)
        assert "AB  -" not in output
        assert "KW  -" not in output
        assert "UR  -" not in output

    def test_source_type_reused(self, handler, bare_options):
        """A source code consistent with the type is written back."""
        ref = Reference(type=ReferenceType.JOURNAL, title="T", ris_type="EJOUR")
        assert handler.export([ref], bare_options).startswith("TY  - EJOUR\n")

    def test_inconsistent_source_type_ignored(self, handler, bare_options):
        """A stale source code does not override the canonical type."""
        ref = Reference(type=ReferenceType.BOOK, title="T", ris_type="JOUR")
        assert handler.export([ref], bare_options).startswith("TY  - BOOK\n")


class TestTemplate:
    """Test skeleton records."""

    def test_default_is_journal(self, handler):
        """Without a type the skeleton is a journal article."""
        template = handler.template()
        assert template.startswith("TY  - JOUR\n")
        assert "JO  - [Journal Name]" in template
        assert template.endswith("ER  - ")

    def test_book_code(self, handler):
        """RIS codes select their own tag list."""
        template = handler.template("BOOK")
        assert template.startswith("TY  - BOOK\n")
        assert "PB  - [Publisher]" in template
        assert "SN  - [ISBN]" in template
        assert "JO  -" not in template

    def test_canonical_chapter(self, handler):
        """Canonical types map to their export code."""
        template = handler.template("chapter")
        assert template.startswith("TY  - CHAP\n")
        assert "BT  - [Book Title]" in template
        assert "ED  - [Editor Name]" in template

    @pytest.mark.parametrize("reference_type", [None, "BOOK", "chapter", "thesis"])
    def test_templates_validate(self, handler, reference_type):
        """Every skeleton is structurally valid RIS."""
        handler.validate(handler.template(reference_type))


class TestValidation:
    """Test structural checks and helpers."""

    def test_validate(self, handler, sample_ris):
        """Well formed content passes."""
        handler.validate(sample_ris)

    def test_validate_without_tags(self, handler):
        """Plain prose is rejected."""
        with pytest.raises(InvalidFormatError):
            handler.validate("just some text")

    def test_validate_without_type(self, handler):
        """Tags without TY are rejected."""
        with pytest.raises(InvalidFormatError, match="TY"):
            handler.validate("TI  - Title\nER  - \n")

    def test_count(self, handler, sample_ris):
        """Records are counted by TY lines."""
        assert handler.count(sample_ris) == 2

    def test_split_records(self, handler, sample_ris):
        """Each split record parses on its own."""
        records = handler.split_records(sample_ris)
        assert len(records) == 2
        assert handler.parse(records[1])[0].title == "The Art of Modelling"

    def test_metadata(self, handler, sample_ris):
        """Metadata reports the count and a source guess."""
        info = handler.metadata("Provider: Zotero\n" + sample_ris)
        assert info["reference_count"] == 2
        assert info["estimated_source"] == "Zotero"

    def test_merge(self, handler, sample_ris):
        """Merged payloads keep every record."""
        merged = handler.merge([sample_ris, "TY  - GEN\nTI  - Extra\nER  - \n"])
        assert "# Total references: 3" in merged
        assert len(handler.parse(merged)) == 3
