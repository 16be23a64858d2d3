"""Duplicate detection against a record store."""

import logging

from bibxchange.core.models import Reference
from bibxchange.core.names import authors_match, first_author
from bibxchange.core.normalize import clean_doi
from bibxchange.store.base import RecordStore, StoredRecord

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """Finds the stored record an incoming reference duplicates.

    A DOI match is authoritative. Without one, records with the same title
    are narrowed down by comparing first-author surnames, so that
    ``"Smith, John"`` and ``"John Smith"`` are treated as the same author.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def find_duplicate(self, reference: Reference) -> StoredRecord | None:
        """Return the existing record matching ``reference``, if any."""
        doi = clean_doi(reference.doi)
        if doi:
            match = self.store.find_by_doi(doi)
            if match is not None:
                logger.debug(f"DOI match for {doi}: record {match.id}")
                return match

        if not reference.title:
            return None
        candidates = self.store.find_by_title(reference.title)
        if not candidates:
            return None

        author = first_author(reference.author)
        if not author:
            return candidates[0]

        for candidate in candidates:
            existing = first_author(candidate.reference.author)
            if existing and authors_match(author, existing):
                logger.debug(f"Title and author match: record {candidate.id}")
                return candidate
        return None

    def is_duplicate(self, reference: Reference) -> bool:
        return self.find_duplicate(reference) is not None
