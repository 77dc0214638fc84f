"""Converts OCR data and validation results to and from JSONB payloads."""

from datetime import datetime
from typing import Any

from claimdocs.documents.models import (
    BoundingBox,
    Dimensions,
    DocumentMetadata,
    ExtractedField,
    OCRData,
    ValidationIssue,
    ValidationResults,
)


def ocr_data_to_payload(ocr_data: OCRData) -> dict[str, Any]:
    return {
        "extracted_text": ocr_data.extracted_text,
        "extracted_fields": [_field_to_payload(f) for f in ocr_data.extracted_fields],
        "confidence": ocr_data.confidence,
        "processed_at": (
            ocr_data.processed_at.isoformat() if ocr_data.processed_at else None
        ),
        "provider": ocr_data.provider,
        "raw_response": ocr_data.raw_response,
    }


def ocr_data_from_payload(data: dict[str, Any]) -> OCRData:
    processed_at = data.get("processed_at")
    return OCRData(
        extracted_text=data.get("extracted_text") or "",
        extracted_fields=[
            _field_from_payload(item) for item in data.get("extracted_fields") or []
        ],
        confidence=float(data.get("confidence") or 0.0),
        processed_at=datetime.fromisoformat(processed_at) if processed_at else None,
        provider=data.get("provider") or "",
        raw_response=data.get("raw_response"),
    )


def validation_results_to_payload(results: ValidationResults) -> dict[str, Any]:
    return {
        "is_valid": results.is_valid,
        "errors": [_issue_to_payload(i) for i in results.errors],
        "warnings": [_issue_to_payload(i) for i in results.warnings],
        "metadata": metadata_to_payload(results.metadata),
    }


def validation_results_from_payload(data: dict[str, Any]) -> ValidationResults:
    return ValidationResults(
        is_valid=bool(data.get("is_valid")),
        errors=[_issue_from_payload(i) for i in data.get("errors") or []],
        warnings=[_issue_from_payload(i) for i in data.get("warnings") or []],
        metadata=metadata_from_payload(data.get("metadata") or {}),
    )


def metadata_to_payload(metadata: DocumentMetadata) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "is_readable": metadata.is_readable,
        "has_text": metadata.has_text,
    }
    if metadata.quality is not None:
        payload["quality"] = metadata.quality
    if metadata.page_count is not None:
        payload["page_count"] = metadata.page_count
    if metadata.dimensions is not None:
        payload["dimensions"] = {
            "width": metadata.dimensions.width,
            "height": metadata.dimensions.height,
        }
    return payload


def metadata_from_payload(data: dict[str, Any]) -> DocumentMetadata:
    dims = data.get("dimensions")
    return DocumentMetadata(
        is_readable=bool(data.get("is_readable", False)),
        has_text=bool(data.get("has_text", False)),
        quality=data.get("quality"),
        page_count=data.get("page_count"),
        dimensions=Dimensions(width=dims["width"], height=dims["height"]) if dims else None,
    )


def _field_to_payload(extracted: ExtractedField) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "field_name": extracted.field_name,
        "value": extracted.value,
        "confidence": extracted.confidence,
        "data_type": extracted.data_type,
    }
    if extracted.bounding_box is not None:
        box = extracted.bounding_box
        payload["bounding_box"] = {
            "left": box.left,
            "top": box.top,
            "width": box.width,
            "height": box.height,
        }
    return payload


def _field_from_payload(data: dict[str, Any]) -> ExtractedField:
    box = data.get("bounding_box")
    return ExtractedField(
        field_name=data["field_name"],
        value=data["value"],
        confidence=float(data["confidence"]),
        data_type=data.get("data_type", "text"),
        bounding_box=BoundingBox(**box) if box else None,
    )


def _issue_to_payload(issue: ValidationIssue) -> dict[str, str]:
    return {"field": issue.field, "message": issue.message, "code": issue.code}


def _issue_from_payload(data: dict[str, Any]) -> ValidationIssue:
    return ValidationIssue(field=data["field"], message=data["message"], code=data["code"])
