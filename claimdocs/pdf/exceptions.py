from claimdocs.documents.exceptions import DocumentServiceError


class PdfInspectionError(DocumentServiceError):
    """Raised when a PDF cannot be opened or has no pages."""
