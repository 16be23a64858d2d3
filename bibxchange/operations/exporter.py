"""Export pipeline: fetch stored records and serialize them."""

import logging
import re
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

from bibxchange.core.models import Reference
from bibxchange.core.options import ExportOptions
from bibxchange.exceptions import (
    FormatError,
    InterchangeError,
    NoDataError,
    NoReferencesFoundError,
)
from bibxchange.formats import get_handler
from bibxchange.formats.base import Format
from bibxchange.store.base import RecordId, RecordStore

from .results import ExportResult, ExportStatistics

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r"[^\w.-]+")


def generate_filename(
    base_name: str,
    format: Format | str,
    include_timestamp: bool = False,
    reference_count: int | None = None,
) -> str:
    """Build a download filename for an export.

    Args:
        base_name: Name without extension; unsafe characters become ``_``
        format: Export format, which decides the extension
        include_timestamp: Append the current date and time
        reference_count: Append ``_<n>_refs`` when given

    Returns:
        Filename with the format's extension
    """
    fmt = Format.from_value(format)
    suffix = f".{fmt.extension}"
    name = base_name.strip()
    if name.lower().endswith(suffix):
        name = name[: -len(suffix)]
    name = UNSAFE_FILENAME_CHARS.sub("_", name).strip("_") or "references"

    if include_timestamp:
        name += f"_{datetime.now():%Y-%m-%d_%H-%M-%S}"
    if reference_count:
        name += f"_{reference_count}_refs"
    return name + suffix


def default_filename(format: Format | str) -> str:
    """``references_<YYYY-MM-DD>`` with the format's extension."""
    return generate_filename(f"references_{date.today():%Y-%m-%d}", format)


def prepare_reference(
    reference: Reference, record_id: RecordId, options: ExportOptions
) -> Reference:
    """Strip empty values, drop excluded fields and attach the store id."""
    changes = {}
    if not options.include_abstracts:
        changes["abstract"] = None
    if not options.include_keywords:
        changes["keywords"] = None
    if not options.include_urls:
        changes["url"] = None
    prepared = reference.replace(**changes) if changes else reference
    return prepared.stripped().with_extras(id=record_id)


def save(result: ExportResult, directory: Path | str) -> Path:
    """Write an export payload into a directory.

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / result.filename
    path.write_text(result.content, encoding="utf-8")
    logger.info(f"Saved {result.format.label} export to {path}")
    return path


class ExportManager:
    """Exports stored records in any supported format."""

    def __init__(self, store: RecordStore):
        self.store = store

    def export_references(
        self,
        ids: Iterable[RecordId],
        format: Format | str,
        options: ExportOptions | None = None,
    ) -> ExportResult:
        """Serialize the given records.

        Records that cannot be fetched are recorded in the statistics and
        the rest are still exported.

        Args:
            ids: Store identifiers in export order
            format: Target format
            options: Export options

        Returns:
            The payload with filename, MIME type and statistics

        Raises:
            UnsupportedFormatError: If the format is unknown.
            NoReferencesFoundError: If no identifiers were given.
            NoDataError: If none of the records could be fetched.
            FormatError: If the serializer fails.
        """
        fmt = Format.from_value(format)
        options = options or ExportOptions()
        ids = list(ids)
        if not ids:
            raise NoReferencesFoundError("No references selected for export")

        stats = ExportStatistics()
        references = []
        for record_id in ids:
            stats.total_processed += 1
            record = self.store.get(record_id)
            if record is None:
                logger.warning(f"Reference {record_id} not found, skipping")
                stats.add_error(record_id, "Reference not found")
                continue
            references.append(prepare_reference(record.reference, record.id, options))
            if self.store.get_usage_count(record.id) > 0:
                stats.cited += 1

        if not references:
            raise NoDataError("No reference data to export")

        handler = get_handler(fmt)
        try:
            content = handler.export(references, options)
        except InterchangeError:
            raise
        except Exception as e:
            raise FormatError(fmt.label, str(e)) from e

        stats.successful = len(references)
        if options.filename:
            filename = generate_filename(options.filename, fmt)
        else:
            filename = default_filename(fmt)
        logger.info(
            f"Exported {stats.successful} references as {fmt.label} "
            f"({stats.failed} failed)"
        )
        return ExportResult(
            content=content,
            filename=filename,
            mime_type=fmt.mime_type,
            format=fmt,
            statistics=stats,
            options=options,
        )
