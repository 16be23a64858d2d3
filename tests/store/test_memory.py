"""Tests for the in-memory record store."""

import threading

import pytest

from bibxchange.core.fields import ReferenceType
from bibxchange.exceptions import RecordNotFoundError
from bibxchange.store import MemoryRecordStore, RecordStore
from bibxchange.store.memory import doi_key, title_key


@pytest.fixture
def store():
    return MemoryRecordStore()


class TestCreate:
    """Test creating and fetching records."""

    def test_is_record_store(self, store):
        """The memory store satisfies the store contract."""
        assert isinstance(store, RecordStore)

    def test_ids_are_sequential(self, store):
        """Identifiers start at 1 and increase."""
        assert store.create({"title": "A"}) == 1
        assert store.create({"title": "B"}) == 2
        assert len(store) == 2

    def test_get(self, store, journal_reference):
        """Stored fields come back as a Reference."""
        record_id = store.create(journal_reference.to_record_fields())
        record = store.get(record_id)
        assert record.id == record_id
        assert record.reference == journal_reference

    def test_get_missing(self, store):
        """Unknown identifiers give None."""
        assert store.get(99) is None

    def test_fields_are_copied(self, store):
        """Later changes to the input do not leak into the store."""
        fields = {"title": "A", "extras": {"k": "v"}}
        record_id = store.create(fields)
        fields["extras"]["k"] = "changed"
        assert store.get(record_id).reference.extras == {"k": "v"}

    def test_all_in_creation_order(self, store):
        """all() lists records as they were created."""
        for title in ("C", "A", "B"):
            store.create({"title": title})
        assert [r.reference.title for r in store.all()] == ["C", "A", "B"]


class TestLookups:
    """Test DOI and title lookups."""

    def test_find_by_doi(self, store):
        """DOIs match regardless of resolver prefix and case."""
        record_id = store.create({"title": "A", "doi": "10.1000/ABC"})
        match = store.find_by_doi("https://doi.org/10.1000/abc")
        assert match.id == record_id

    def test_find_by_doi_missing(self, store):
        """No match gives None."""
        store.create({"title": "A", "doi": "10.1/a"})
        assert store.find_by_doi("10.1/b") is None
        assert store.find_by_doi("") is None

    def test_find_by_title(self, store):
        """Titles match ignoring case and spacing."""
        first = store.create({"title": "Climate  Models"})
        store.create({"title": "Other"})
        second = store.create({"title": "climate models"})
        matches = store.find_by_title("CLIMATE MODELS")
        assert [m.id for m in matches] == [first, second]

    def test_title_key(self):
        """Keys are casefolded with collapsed whitespace."""
        assert title_key("  A\n Study ") == "a study"
        assert title_key(None) == ""

    def test_doi_key(self):
        """Keys drop resolver prefixes and case."""
        assert doi_key("https://doi.org/10.1000/ABC") == "10.1000/abc"
        assert doi_key(None) == ""

    def test_lookups_follow_updates(self, store):
        """Updated DOIs and titles are found under their new values only."""
        record_id = store.create({"title": "Draft", "doi": "10.1/old"})
        store.update(record_id, {"title": "Final", "doi": "10.1/new"})

        assert store.find_by_doi("10.1/old") is None
        assert store.find_by_doi("10.1/new").id == record_id
        assert store.find_by_title("Draft") == []
        assert [m.id for m in store.find_by_title("final")] == [record_id]

    def test_lookups_use_indexes(self, store):
        """Lookups read the indexes rather than every stored record."""
        store.create({"title": "A", "doi": "10.1/a"})
        store.create({"title": "B", "doi": "10.1/b"})
        assert store._by_doi["10.1/b"] == {2}
        assert store._by_title["a"] == {1}


class TestUpdate:
    """Test merging fields into records."""

    def test_update_merges(self, store):
        """New values replace old ones and blanks are ignored."""
        record_id = store.create(
            {"type": "journal", "title": "A", "volume": "1", "extras": {"a": 1}}
        )
        store.update(record_id, {"volume": "2", "issue": "", "extras": {"b": 2}})

        ref = store.get(record_id).reference
        assert ref.type is ReferenceType.JOURNAL
        assert ref.volume == "2"
        assert ref.issue is None
        assert ref.extras == {"a": 1, "b": 2}

    def test_update_missing(self, store):
        """Unknown identifiers raise."""
        with pytest.raises(RecordNotFoundError, match="42"):
            store.update(42, {"title": "A"})


class TestUsage:
    """Test citation usage counts."""

    def test_default_zero(self, store):
        """Records start uncited."""
        record_id = store.create({"title": "A"})
        assert store.get_usage_count(record_id) == 0

    def test_set_usage(self, store):
        """Usage counts can be recorded."""
        record_id = store.create({"title": "A"})
        store.set_usage_count(record_id, 3)
        assert store.get_usage_count(record_id) == 3

    def test_set_usage_missing(self, store):
        """Counts cannot be set for unknown records."""
        with pytest.raises(RecordNotFoundError):
            store.set_usage_count(5, 1)


def test_concurrent_creates(store):
    """Identifiers stay unique across threads."""
    ids = []
    lock = threading.Lock()

    def worker():
        for i in range(50):
            record_id = store.create({"title": f"T{i}"})
            with lock:
                ids.append(record_id)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(ids)) == 200
    assert len(store) == 200
