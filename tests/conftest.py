"""Pytest configuration and fixtures."""

import os

import pytest

from bibxchange.core.fields import ReferenceType
from bibxchange.core.models import Reference


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Isolate environment variables for each test.

    This prevents test pollution where one test's environment
    changes affect other tests.
    """
    original_env = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def journal_reference() -> Reference:
    """A fully populated journal article."""
    return Reference(
        type=ReferenceType.JOURNAL,
        title="Climate Models",
        author="Doe, Jane; Smith, John",
        year=2021,
        journal="Journal of Climate",
        volume="12",
        issue="3",
        pages="123-145",
        doi="10.1000/climate.2021",
        url="https://example.org/climate",
        abstract="We compare climate models.",
        keywords="climate, models",
        language="en",
    )


@pytest.fixture
def book_reference() -> Reference:
    """A book with a publisher and an ISBN."""
    return Reference(
        type=ReferenceType.BOOK,
        title="The Art of Modelling",
        author="Roe, Richard",
        year=2019,
        publisher="Example Press",
        location="Oslo",
        isbn="9780306406157",
    )
