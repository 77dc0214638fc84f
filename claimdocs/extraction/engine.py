"""OCR extraction engine.

Turns one provider call into OCRData:
1. Full text from LINE blocks in provider order.
2. Generic key/value pairs from KEY_VALUE_SET blocks, gated on key confidence.
3. Document-type specific fields from pattern extractors, appended as-is.
4. Aggregate confidence over every block carrying a confidence.
"""

from datetime import datetime, timezone

from claimdocs.documents.exceptions import ExtractionError
from claimdocs.documents.models import ExtractedField, ExtractionResult, OCRData
from claimdocs.documents.registry import DocumentTypeRegistry
from claimdocs.extraction.blocks import (
    BLOCK_KEY_VALUE_SET,
    BLOCK_LINE,
    ENTITY_KEY,
    RELATIONSHIP_CHILD,
    RELATIONSHIP_VALUE,
    Block,
)
from claimdocs.extraction.extractors import BaseFieldExtractor, build_extractor_registry
from claimdocs.extraction.fields import detect_data_type, normalize_field_name
from claimdocs.extraction.provider_base import BaseOcrProvider
from claimdocs.logging.logger import Log


class OcrEngine:
    """Runs the OCR provider and assembles typed fields for a document."""

    def __init__(
        self,
        provider: BaseOcrProvider,
        *,
        confidence_threshold: float = 0.8,
        extractors: DocumentTypeRegistry[BaseFieldExtractor] | None = None,
    ) -> None:
        self._provider = provider
        self._confidence_threshold = confidence_threshold
        self._extractors = extractors if extractors is not None else build_extractor_registry()

    def extract(self, data: bytes, document_type: str) -> ExtractionResult:
        """Extract text and fields. Provider and payload faults become failed results."""
        try:
            ocr_data = self._analyze(data, document_type)
        except ExtractionError as exc:
            Log.warning(f"OCR extraction failed for {document_type}: {exc}")
            return ExtractionResult(success=False, error=str(exc), confidence_score=0.0)

        Log.info(
            f"OCR extraction complete: {len(ocr_data.extracted_fields)} fields, "
            f"confidence {ocr_data.confidence:.2f}"
        )
        return ExtractionResult(
            success=True,
            ocr_data=ocr_data,
            confidence_score=ocr_data.confidence,
        )

    def _analyze(self, data: bytes, document_type: str) -> OCRData:
        analysis = self._provider.analyze(data)
        if not analysis.blocks:
            raise ExtractionError("No blocks found in OCR response")

        blocks_by_id = {block.id: block for block in analysis.blocks}
        extracted_text = self._full_text(analysis.blocks)
        fields = self._key_value_fields(analysis.blocks, blocks_by_id)

        extractor = self._extractors.get(document_type)
        if extractor is not None:
            fields.extend(extractor.extract(extracted_text))

        return OCRData(
            extracted_text=extracted_text,
            extracted_fields=fields,
            confidence=self._aggregate_confidence(analysis.blocks),
            processed_at=datetime.now(timezone.utc),
            provider=self._provider.name,
            raw_response=analysis.raw_response,
        )

    @staticmethod
    def _full_text(blocks: list[Block]) -> str:
        return "\n".join(block.text or "" for block in blocks if block.block_type == BLOCK_LINE)

    def _key_value_fields(
        self,
        blocks: list[Block],
        blocks_by_id: dict[str, Block],
    ) -> list[ExtractedField]:
        fields: list[ExtractedField] = []
        for key_block in blocks:
            if key_block.block_type != BLOCK_KEY_VALUE_SET or ENTITY_KEY not in key_block.entity_types:
                continue
            value_block = next(
                (
                    blocks_by_id[block_id]
                    for block_id in key_block.related_ids(RELATIONSHIP_VALUE)
                    if block_id in blocks_by_id
                ),
                None,
            )
            if value_block is None:
                continue

            key_text = self._block_text(key_block, blocks_by_id)
            value_text = self._block_text(value_block, blocks_by_id).strip()
            if not key_text or not value_text:
                continue

            confidence = (key_block.confidence or 0.0) / 100
            if confidence < self._confidence_threshold:
                continue

            field_name = normalize_field_name(key_text)
            fields.append(
                ExtractedField(
                    field_name=field_name,
                    value=value_text,
                    confidence=confidence,
                    data_type=detect_data_type(value_text, field_name),
                    bounding_box=key_block.bounding_box,
                )
            )
        return fields

    @staticmethod
    def _block_text(block: Block, blocks_by_id: dict[str, Block]) -> str:
        if block.text:
            return block.text
        child_texts = [
            blocks_by_id[child_id].text
            for child_id in block.related_ids(RELATIONSHIP_CHILD)
            if child_id in blocks_by_id and blocks_by_id[child_id].text
        ]
        return " ".join(text for text in child_texts if text)

    @staticmethod
    def _aggregate_confidence(blocks: list[Block]) -> float:
        values = [block.confidence for block in blocks if block.confidence is not None]
        if not values:
            return 0.0
        return sum(values) / len(values) / 100
