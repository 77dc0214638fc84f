from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

MAX_FILE_SIZE_BYTES = 5_242_880
ALLOWED_MIME_TYPES = frozenset(
    {"application/pdf", "image/jpeg", "image/jpg", "image/png"}
)

ValidationStatus = Literal["pending", "processing", "validated", "failed"]
DataType = Literal["text", "number", "date", "currency", "percentage"]
Quality = Literal["high", "medium", "low"]

STATUS_PENDING: ValidationStatus = "pending"
STATUS_PROCESSING: ValidationStatus = "processing"
STATUS_VALIDATED: ValidationStatus = "validated"
STATUS_FAILED: ValidationStatus = "failed"


@dataclass(frozen=True)
class BoundingBox:
    """Normalized (0-1) rectangle locating a block on the page."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class ExtractedField:
    """A single typed field recovered from a document."""

    field_name: str
    value: str
    confidence: float
    data_type: DataType = "text"
    bounding_box: BoundingBox | None = None


@dataclass
class OCRData:
    """Output of the extraction engine for one document version."""

    extracted_text: str
    extracted_fields: list[ExtractedField] = field(default_factory=list)
    confidence: float = 0.0
    processed_at: datetime | None = None
    provider: str = ""
    raw_response: Any = None


@dataclass
class ExtractionResult:
    """Outcome of one extraction attempt. Failures carry an error message."""

    success: bool
    ocr_data: OCRData | None = None
    error: str | None = None
    confidence_score: float = 0.0


@dataclass(frozen=True)
class ValidationRule:
    """Caller-supplied, field-level expectation."""

    field_name: str
    required: bool = False
    data_type: DataType = "text"
    expected_value: str | None = None
    expected_pattern: str | None = None
    tolerance: float | None = None


@dataclass(frozen=True)
class ValidationIssue:
    """An error or warning produced by validation."""

    field: str
    message: str
    code: str


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int


@dataclass
class DocumentMetadata:
    """Readability and quality facts about a document."""

    is_readable: bool = False
    has_text: bool = False
    quality: Quality | None = None
    page_count: int | None = None
    dimensions: Dimensions | None = None


@dataclass
class ValidationResults:
    """Verdict of the validation engine."""

    is_valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)


@dataclass
class Document:
    """Represents the live row of the documents table."""

    document_id: str
    application_id: str
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    location: str
    document_type: str
    uploaded_by: str
    validation_status: ValidationStatus = STATUS_PROCESSING
    validation_results: ValidationResults | None = None
    ocr_data: OCRData | None = None
    confidence_score: float | None = None
    version: int = 1
    revision: int = 0
    uploaded_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class DocumentVersion:
    """Immutable snapshot of a document's stored file and processing state."""

    document_id: str
    version_number: int
    location: str
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    validation_status: ValidationStatus
    created_by: str
    validation_results: ValidationResults | None = None
    ocr_data: OCRData | None = None
    confidence_score: float | None = None
    version_id: str = ""
    created_at: datetime | None = None


@dataclass(frozen=True)
class UploadedFile:
    """A file handed over by the HTTP layer."""

    filename: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class DocumentSearchQuery:
    application_id: str | None = None
    document_type: str | None = None
    validation_status: ValidationStatus | None = None
    uploaded_by: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = 20
    offset: int = 0


@dataclass(frozen=True)
class ConfidenceSummary:
    average_confidence: float
    low_confidence_documents: list[str]
    total_documents: int
    processed_documents: int


@dataclass(frozen=True)
class DocumentTypeStatistics:
    document_type: str
    count: int
    average_confidence: float


@dataclass(frozen=True)
class DocumentStatistics:
    """Aggregate counters over the documents table."""

    total_documents: int = 0
    validated_documents: int = 0
    failed_documents: int = 0
    pending_documents: int = 0
    processing_documents: int = 0
    average_confidence: float = 0.0
    total_file_size: int = 0
    unique_document_types: int = 0
    document_type_breakdown: list[DocumentTypeStatistics] = field(default_factory=list)
