"""Shared fixtures for import and export tests."""

import pytest

from bibxchange.store import MemoryRecordStore

RIS_TWO_RECORDS = """TY  - JOUR
AU  - Smith, John
TI  - A Study of Things
PY  - 2021
DO  - 10.1000/xyz
ER  -

TY  - BOOK
AU  - Roe, Richard
TI  - The Art of Modelling
PY  - 2019
ER  -
"""


@pytest.fixture
def store():
    """Empty in-memory record store."""
    return MemoryRecordStore()


@pytest.fixture
def ris_content() -> str:
    return RIS_TWO_RECORDS


@pytest.fixture
def populated_store(store, journal_reference, book_reference):
    """Store holding the journal and book references as records 1 and 2."""
    store.create(journal_reference.to_record_fields())
    store.create(book_reference.to_record_fields())
    return store
