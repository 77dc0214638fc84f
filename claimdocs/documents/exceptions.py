class DocumentServiceError(Exception):
    """Base exception for all document-service errors."""


class StorageError(DocumentServiceError):
    """Raised on I/O failure against object storage or the relational store."""


class ExtractionError(DocumentServiceError):
    """Raised when the OCR provider call fails, times out or returns garbage."""


class OcrProviderError(ExtractionError):
    """Raised by provider adapters when the recognition call fails."""


class OcrProviderTimeoutError(OcrProviderError):
    """Raised by provider adapters when the recognition call times out."""


class ValidationFault(DocumentServiceError):
    """Raised internally while computing a verdict. Never escapes the engine."""


class NotFoundError(DocumentServiceError):
    """Raised when a document or version id is unknown."""


class DocumentNotFoundError(NotFoundError):
    """Raised when a document cannot be found in the database."""


class VersionNotFoundError(NotFoundError):
    """Raised when a document version snapshot does not exist."""


class ConflictError(DocumentServiceError):
    """Raised when a version number is already taken."""


class StaleDocumentError(ConflictError):
    """Raised when a document row changed since it was read."""


class InvalidUploadError(DocumentServiceError):
    """Raised when an uploaded file is empty, too large or of a disallowed type."""


class JobSupersededError(DocumentServiceError):
    """Raised when an extraction job targets a version that is no longer current."""
