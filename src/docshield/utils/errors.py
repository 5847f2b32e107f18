"""Typed exceptions for document analysis, redaction and persistence.

Fatal errors (unsupported format, encrypted input, persistence failures)
propagate to the caller.  Recoverable ones (a single extraction unit or a
single pattern failing) are logged and the affected unit is skipped.
"""


class DocShieldError(Exception):
    """Base class for all package errors."""


class ConfigError(DocShieldError):
    """Raised when configuration loading or validation fails."""


class IOFormatError(DocShieldError, ValueError):
    """Base class for document format related errors."""


class UnsupportedFormatError(IOFormatError):
    """Raised when no document opener is registered for a MIME type."""


class EncryptedDocumentError(IOFormatError):
    """Raised when a document requires a password to be opened."""


class DocumentOpenError(IOFormatError):
    """Raised when a document buffer cannot be parsed."""


class ExtractionUnitFailure(DocShieldError):
    """A single page, field, link or annotation could not be extracted.

    Recoverable: the unit is logged and left out of the analysis.
    """

    def __init__(self, unit: str, page_number: int | None, cause: BaseException) -> None:
        where = f"page {page_number}" if page_number is not None else "document"
        super().__init__(f"failed to extract {unit} on {where}: {cause}")
        self.unit = unit
        self.page_number = page_number
        self.cause = cause


class PatternError(DocShieldError, ValueError):
    """Raised when a redaction pattern cannot be compiled or registered."""


class PatternApplicationError(DocShieldError):
    """A registered pattern failed while scanning text.

    Recoverable: the pattern is skipped for that text and the others run.
    """

    def __init__(self, pattern_name: str, cause: BaseException) -> None:
        super().__init__(f"pattern {pattern_name!r} failed: {cause}")
        self.pattern_name = pattern_name
        self.cause = cause


class PersistenceError(DocShieldError):
    """Raised when the persistence store cannot complete an operation."""


class DocumentNotFoundError(PersistenceError):
    """Raised when a document id is unknown to the store."""


class RedactionStateError(DocShieldError, RuntimeError):
    """Raised when a redaction plan is committed out of order."""
