"""Import pipeline: detect, parse, validate, deduplicate and write records."""

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

from bibxchange.core.models import Reference
from bibxchange.core.names import Person
from bibxchange.core.normalize import is_valid_date
from bibxchange.core.options import ImportOptions
from bibxchange.exceptions import (
    EmptyContentError,
    InterchangeError,
    InvalidAuthorFormatError,
    InvalidDateFormatError,
    MissingRequiredFieldError,
    ParseError,
    RecordValidationError,
)
from bibxchange.formats import get_handler
from bibxchange.formats.base import Format
from bibxchange.store.base import RecordStore

from .detection import detect_format
from .duplicates import DuplicateDetector
from .results import ImportResult

logger = logging.getLogger(__name__)


def batched(items: Sequence[Reference], size: int) -> Iterator[Sequence[Reference]]:
    """Yield consecutive slices of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


def validate_reference(reference: Reference) -> None:
    """Check a parsed reference before it is written.

    Raises:
        MissingRequiredFieldError: If the title is blank.
        InvalidAuthorFormatError: If the author is neither text nor names.
        InvalidDateFormatError: If the record carries an unreadable date.
    """
    if not reference.title or not reference.title.strip():
        raise MissingRequiredFieldError("title")

    author = reference.author
    if author is not None and not isinstance(author, str):
        if not isinstance(author, tuple) or not all(
            isinstance(person, Person) for person in author
        ):
            raise InvalidAuthorFormatError(author)

    date = reference.extra("date")
    if date is not None and not is_valid_date(date):
        raise InvalidDateFormatError(date)


class ImportManager:
    """Imports reference data into a record store.

    Each call gets its own statistics, so a manager holds no state between
    runs apart from its store and default options.
    """

    def __init__(self, store: RecordStore, options: ImportOptions | None = None):
        """Initialize importer.

        Args:
            store: Record store receiving new and updated records
            options: Default options for calls that do not pass their own
        """
        self.store = store
        self.options = options or ImportOptions()
        self.detector = DuplicateDetector(store)

    def import_file(
        self,
        path: Path | str,
        options: ImportOptions | None = None,
        format: Format | str | None = None,
    ) -> ImportResult:
        """Import references from a file.

        The format is taken from ``format`` when given, otherwise from the
        file extension and then the content.
        """
        path = Path(path)
        content = path.read_text(encoding="utf-8")
        fmt = Format.from_value(format) if format else detect_format(path, content)
        logger.info(f"Importing {path.name} as {fmt.label}")
        return self.import_data(content, fmt, options)

    def import_data(
        self,
        data: str | list[Any] | dict[str, Any],
        format: Format | str | None = None,
        options: ImportOptions | None = None,
    ) -> ImportResult:
        """Import references from content or decoded JSON data.

        Args:
            data: Text in any supported format, or already decoded JSON
            format: Format of ``data``; detected from the content when omitted
            options: Options for this call

        Returns:
            Import result with statistics and written record ids

        Raises:
            InterchangeError: If the content cannot be parsed as a whole.
                Nothing is written in that case.
        """
        options = options or self.options
        references, fmt = self._parse(data, format)

        result = ImportResult(format=fmt, options=options)
        stats = result.statistics

        for number, batch in enumerate(batched(references, options.batch_size), 1):
            logger.info(f"Processing batch {number} ({len(batch)} records)")
            offset = (number - 1) * options.batch_size
            for index, reference in enumerate(batch, offset + 1):
                self._process(reference, index, options, result)

        logger.info(
            f"Import finished: {stats.successful} imported, {stats.updated} updated, "
            f"{stats.duplicates_found} duplicates, {stats.failed} failed"
        )
        return result

    def _parse(
        self, data: str | list[Any] | dict[str, Any], format: Format | str | None
    ) -> tuple[list[Reference], Format]:
        if isinstance(data, str):
            fmt = Format.from_value(format) if format else None
            if not data.strip():
                raise EmptyContentError(fmt.label if fmt else "")
            fmt = fmt or detect_format(content=data)
        else:
            fmt = Format.JSON

        handler = get_handler(fmt)
        try:
            if isinstance(data, str):
                references = handler.parse(data)
            else:
                references = handler.parse_data(data)
        except InterchangeError:
            raise
        except Exception as e:
            raise ParseError(fmt.label, str(e)) from e

        logger.debug(f"Parsed {len(references)} {fmt.label} records")
        return references, fmt

    def _process(
        self,
        reference: Reference,
        index: int,
        options: ImportOptions,
        result: ImportResult,
    ) -> None:
        stats = result.statistics
        stats.total_processed += 1
        identifier = reference.title or f"record {index}"

        if options.validate_data:
            try:
                validate_reference(reference)
            except RecordValidationError as e:
                logger.warning(f"Skipping {identifier}: {e}")
                stats.add_error(identifier, str(e))
                return

        if options.check_duplicates:
            existing = self.detector.find_duplicate(reference)
            if existing is not None:
                stats.duplicates_found += 1
                if options.update_existing:
                    self.store.update(existing.id, reference.to_record_fields())
                    stats.updated += 1
                    result.updated_ids.append(existing.id)
                    logger.debug(f"Updated record {existing.id} from {identifier}")
                else:
                    logger.debug(f"Skipping duplicate of record {existing.id}")
                return

        record_id = self.store.create(reference.to_record_fields())
        stats.successful += 1
        result.imported_ids.append(record_id)
