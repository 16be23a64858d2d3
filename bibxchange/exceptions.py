"""Exception classes for the interchange layer.

Format-level errors abort a whole parse, import or export call. Record-level
errors derive from RecordValidationError and are collected per record by the
import orchestrator instead of aborting the run.
"""


class InterchangeError(Exception):
    """Base exception for interchange errors."""

    code = "interchange_error"


class EmptyContentError(InterchangeError):
    """Raised when a parser receives empty content."""

    code = "empty_content"

    def __init__(self, format_name: str = ""):
        """Initialize with the name of the format being parsed."""
        self.format_name = format_name
        label = f"{format_name} content" if format_name else "Content"
        super().__init__(f"{label} is empty")


class InvalidFormatError(InterchangeError):
    """Raised when content lacks the structural markers of its format."""

    code = "invalid_format"

    def __init__(self, message: str, format_name: str = ""):
        """Initialize with message and format name."""
        self.format_name = format_name
        super().__init__(message)


class UnbalancedBracesError(InvalidFormatError):
    """Raised when BibTeX content has unbalanced braces."""

    code = "unbalanced_braces"

    def __init__(self, opening: int, closing: int):
        """Initialize with the counted brace totals."""
        self.opening = opening
        self.closing = closing
        super().__init__(
            f"Unbalanced braces in BibTeX content "
            f"({opening} opening, {closing} closing)",
            "bibtex",
        )


class MissingHeaderError(InvalidFormatError):
    """Raised when CSV content lacks a required header column."""

    code = "missing_header"

    def __init__(self, header: str):
        """Initialize with the missing header name."""
        self.header = header
        super().__init__(f"Required CSV header missing: {header}", "csv")


class NoDataError(InterchangeError):
    """Raised when CSV content contains no rows at all."""

    code = "no_data"

    def __init__(self, message: str = "No data found"):
        """Initialize with message."""
        super().__init__(message)


class NoReferencesFoundError(InterchangeError):
    """Raised when content is well formed but yields no references."""

    code = "no_references"

    def __init__(self, message: str = "No references found"):
        """Initialize with message."""
        super().__init__(message)


class UnsupportedFormatError(InterchangeError, ValueError):
    """Raised when a format has no registered parser or serializer."""

    code = "unsupported_format"

    def __init__(self, format_name: str | None):
        """Initialize with the requested format."""
        self.format_name = format_name
        if format_name:
            message = f"Unsupported format: {format_name}"
        else:
            message = "Could not detect format"
        super().__init__(message)


class ParseError(InterchangeError):
    """Raised when a parser fails unexpectedly."""

    code = "parse_error"

    def __init__(self, format_name: str, details: str):
        """Initialize with format name and failure details."""
        self.format_name = format_name
        self.details = details
        super().__init__(f"Failed to parse {format_name} content: {details}")


class FormatError(InterchangeError):
    """Raised when a serializer fails unexpectedly."""

    code = "format_error"

    def __init__(self, format_name: str, details: str):
        """Initialize with format name and failure details."""
        self.format_name = format_name
        self.details = details
        super().__init__(f"Failed to generate {format_name} content: {details}")


class RecordValidationError(InterchangeError, ValueError):
    """Base exception for errors affecting a single record."""

    code = "invalid_record"


class MissingRequiredFieldError(RecordValidationError):
    """Raised when a record lacks a required field."""

    code = "missing_required_field"

    def __init__(self, field: str):
        """Initialize with the missing field name."""
        self.field = field
        super().__init__(f"Required field missing: {field}")


class InvalidAuthorFormatError(RecordValidationError):
    """Raised when an author field is neither text nor a list of names."""

    code = "invalid_author_format"

    def __init__(self, value: object):
        """Initialize with the offending value."""
        self.value = value
        super().__init__(f"Invalid author format: {type(value).__name__}")


class InvalidDateFormatError(RecordValidationError):
    """Raised when a record carries a date that cannot be interpreted."""

    code = "invalid_date_format"

    def __init__(self, value: object):
        """Initialize with the offending value."""
        self.value = value
        super().__init__(f"Invalid date format: {value!r}")


class RecordNotFoundError(InterchangeError, KeyError):
    """Raised when a record store has no record with the given identifier."""

    code = "record_not_found"

    def __init__(self, record_id: object):
        """Initialize with the missing identifier."""
        self.record_id = record_id
        super().__init__(f"Record not found: {record_id}")

    def __str__(self) -> str:
        return self.args[0]
