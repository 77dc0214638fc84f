"""Validation engine.

Runs six stages over one shared issue accumulator:
1. Basic file checks (size, mime type, overall confidence).
2. Per-field reconciliation against the applicant's claims and format checks.
3. Caller-supplied field rules.
4. Overall OCR confidence.
5. Document-type business rules.
6. Readability and quality metadata.

Any internal fault collapses the verdict into a single VALIDATION_ERROR.
"""

import re
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from claimdocs.documents.exceptions import ValidationFault
from claimdocs.documents.models import (
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE_BYTES,
    Document,
    DocumentMetadata,
    OCRData,
    Quality,
    ValidationIssue,
    ValidationResults,
    ValidationRule,
)
from claimdocs.documents.registry import DocumentTypeRegistry
from claimdocs.logging.logger import Log
from claimdocs.validation.business_rules import BaseBusinessRules, build_rules_registry
from claimdocs.validation.claims import claimed_value_for_field
from claimdocs.validation.comparison import (
    is_valid_currency,
    is_valid_date,
    is_valid_number,
    is_valid_percentage,
    parse_decimal,
    values_match,
)
from claimdocs.validation.issues import IssueCollector

_FORMAT_CHECKS = {
    "currency": (is_valid_currency, "INVALID_CURRENCY_FORMAT", "Invalid currency format"),
    "percentage": (is_valid_percentage, "INVALID_PERCENTAGE_FORMAT", "Invalid percentage format"),
    "date": (is_valid_date, "INVALID_DATE_FORMAT", "Invalid date format"),
    "number": (is_valid_number, "INVALID_NUMBER_FORMAT", "Invalid number format"),
}


class ValidationEngine:
    """Produces a verdict for a document against claims and rules."""

    def __init__(
        self,
        *,
        confidence_threshold: float = 0.8,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        business_rules: DocumentTypeRegistry[BaseBusinessRules] | None = None,
    ) -> None:
        self._confidence_threshold = confidence_threshold
        self._max_file_size = max_file_size
        self._business_rules = (
            business_rules if business_rules is not None else build_rules_registry()
        )

    def validate(
        self,
        document: Document,
        application_data: Mapping[str, Any] | None = None,
        rules: Sequence[ValidationRule] | None = None,
    ) -> ValidationResults:
        try:
            return self._validate(document, application_data, rules or ())
        except Exception as exc:  # noqa: BLE001
            Log.exception(f"Validation failed for document {document.document_id}: {exc}")
            return ValidationResults(
                is_valid=False,
                errors=[
                    ValidationIssue(
                        field="general",
                        message=f"Validation process failed: {exc}",
                        code="VALIDATION_ERROR",
                    )
                ],
                warnings=[],
                metadata=DocumentMetadata(is_readable=False, has_text=False),
            )

    def _validate(
        self,
        document: Document,
        application_data: Mapping[str, Any] | None,
        rules: Sequence[ValidationRule],
    ) -> ValidationResults:
        issues = IssueCollector()
        self._check_basics(document, issues)

        ocr_data = document.ocr_data
        if ocr_data is not None:
            self._reconcile_fields(ocr_data, application_data, issues)
            self._apply_custom_rules(ocr_data, rules, issues)
            if ocr_data.confidence < self._confidence_threshold:
                issues.warning(
                    "ocr_confidence",
                    f"Overall OCR confidence is low ({ocr_data.confidence * 100:.1f}%)",
                    "LOW_OCR_CONFIDENCE",
                )
            business_rules = self._business_rules.get(document.document_type)
            if business_rules is not None:
                business_rules.apply(ocr_data, application_data, issues)
                self._drop_reconciled(business_rules, issues)

        Log.debug(
            f"Validated document {document.document_id}: "
            f"{len(issues.errors)} errors, {len(issues.warnings)} warnings"
        )
        return ValidationResults(
            is_valid=not issues.errors,
            errors=issues.errors,
            warnings=issues.warnings,
            metadata=self._metadata(document),
        )

    def _check_basics(self, document: Document, issues: IssueCollector) -> None:
        if document.file_size > self._max_file_size:
            issues.error(
                "file_size",
                f"File size exceeds maximum allowed size of {self._max_file_size // (1024 * 1024)}MB",
                "FILE_SIZE_EXCEEDED",
            )
        if document.mime_type not in ALLOWED_MIME_TYPES:
            issues.error(
                "mime_type",
                "Invalid file type. Only PDF, JPEG, and PNG files are allowed",
                "INVALID_FILE_TYPE",
            )
        if (
            document.confidence_score is not None
            and document.confidence_score < self._confidence_threshold
        ):
            issues.warning(
                "confidence_score",
                f"Low OCR confidence score: {document.confidence_score * 100:.1f}%",
                "LOW_CONFIDENCE",
            )

    def _reconcile_fields(
        self,
        ocr_data: OCRData,
        application_data: Mapping[str, Any] | None,
        issues: IssueCollector,
    ) -> None:
        for extracted in ocr_data.extracted_fields:
            name = extracted.field_name
            if extracted.confidence < self._confidence_threshold:
                issues.warning(
                    name,
                    f"Low confidence for field {name}: {extracted.confidence * 100:.1f}%",
                    "LOW_FIELD_CONFIDENCE",
                )

            claimed = claimed_value_for_field(application_data, name)
            if claimed is not None and not values_match(extracted.value, claimed, extracted.data_type):
                issues.error(
                    name,
                    f'Document value "{extracted.value}" does not match application value "{claimed}"',
                    "DATA_MISMATCH",
                )

            check = _FORMAT_CHECKS.get(extracted.data_type)
            if check is not None:
                is_valid, code, message = check
                if not is_valid(extracted.value):
                    issues.error(name, f"{message}: {extracted.value}", code)

    @staticmethod
    def _apply_custom_rules(
        ocr_data: OCRData,
        rules: Sequence[ValidationRule],
        issues: IssueCollector,
    ) -> None:
        fields_by_name = {}
        for extracted in ocr_data.extracted_fields:
            fields_by_name.setdefault(extracted.field_name, extracted)

        for rule in rules:
            extracted = fields_by_name.get(rule.field_name)
            if extracted is None:
                if rule.required:
                    issues.error(
                        rule.field_name,
                        f"Required field {rule.field_name} is missing",
                        "REQUIRED_FIELD_MISSING",
                    )
                continue

            if rule.expected_value is not None and not _matches_expected(extracted.value, rule):
                issues.error(
                    rule.field_name,
                    f"Expected {rule.expected_value}, found {extracted.value}",
                    "EXPECTED_VALUE_MISMATCH",
                )
            if rule.expected_pattern is not None:
                try:
                    pattern = re.compile(rule.expected_pattern)
                except re.error as exc:
                    raise ValidationFault(
                        f"Invalid pattern for field {rule.field_name}: {exc}"
                    ) from exc
                if pattern.search(extracted.value) is None:
                    issues.error(
                        rule.field_name,
                        f"Value {extracted.value} does not match expected pattern",
                        "PATTERN_MISMATCH",
                    )
            if rule.data_type != extracted.data_type:
                issues.warning(
                    rule.field_name,
                    f"Expected data type {rule.data_type}, found {extracted.data_type}",
                    "DATA_TYPE_MISMATCH",
                )

    @staticmethod
    def _drop_reconciled(business_rules: BaseBusinessRules, issues: IssueCollector) -> None:
        """Report each claim discrepancy once, preferring the business rule's verdict."""
        for field_name, code in business_rules.reconciled_fields.items():
            if issues.has_error(field_name, code):
                issues.discard_errors(field_name, "DATA_MISMATCH")

    @staticmethod
    def _metadata(document: Document) -> DocumentMetadata:
        text = document.ocr_data.extracted_text if document.ocr_data else ""
        return DocumentMetadata(
            is_readable=bool(text),
            has_text=bool(text.strip()),
            quality=quality_for(document.confidence_score),
        )


def quality_for(confidence: float | None) -> Quality | None:
    """Bucket a confidence score: > 0.9 high, > 0.7 medium, else low."""
    if confidence is None:
        return None
    if confidence > 0.9:
        return "high"
    if confidence > 0.7:
        return "medium"
    return "low"


def _matches_expected(value: str, rule: ValidationRule) -> bool:
    """Exact match, or a numeric match within the rule's tolerance when it has one."""
    if rule.tolerance is not None:
        actual = parse_decimal(value)
        expected = parse_decimal(rule.expected_value)
        if actual is not None and expected is not None:
            return abs(actual - expected) <= Decimal(str(rule.tolerance))
    return value == rule.expected_value
