from unittest.mock import MagicMock

import pytest

from claimdocs.documents.exceptions import OcrProviderError, OcrProviderTimeoutError
from claimdocs.documents.models import BoundingBox
from claimdocs.extraction.blocks import (
    BLOCK_KEY_VALUE_SET,
    BLOCK_LINE,
    BLOCK_WORD,
    ENTITY_KEY,
    ENTITY_VALUE,
    RELATIONSHIP_CHILD,
    RELATIONSHIP_VALUE,
    AnalysisResult,
    Block,
    Relationship,
)
from claimdocs.extraction.engine import OcrEngine
from claimdocs.extraction.example_adapter import ExampleOcrAdapter
from claimdocs.extraction.textract_adapter import TextractAdapter


def _make_engine(blocks: list[Block], threshold: float = 0.8) -> tuple[OcrEngine, MagicMock]:
    provider = MagicMock()
    provider.name = "mock"
    provider.analyze.return_value = AnalysisResult(blocks=blocks, raw_response={"Blocks": []})
    return OcrEngine(provider, confidence_threshold=threshold), provider


def _key_value_pair(key_confidence: float, key_text: str = "Date of Issue", value_text: str = "12/04/2024") -> list[Block]:
    return [
        Block(
            id="k",
            block_type=BLOCK_KEY_VALUE_SET,
            confidence=key_confidence,
            text=key_text,
            entity_types=(ENTITY_KEY,),
            relationships=(Relationship(type=RELATIONSHIP_VALUE, ids=("v",)),),
            bounding_box=BoundingBox(left=0.1, top=0.2, width=0.3, height=0.05),
        ),
        Block(
            id="v",
            block_type=BLOCK_KEY_VALUE_SET,
            confidence=90.0,
            text=value_text,
            entity_types=(ENTITY_VALUE,),
        ),
    ]


class TestFullText:
    def test_joins_line_blocks_in_provider_order(self) -> None:
        engine, _provider = _make_engine(
            [
                Block(id="1", block_type=BLOCK_LINE, confidence=99.0, text="first"),
                Block(id="2", block_type=BLOCK_WORD, confidence=99.0, text="ignored"),
                Block(id="3", block_type=BLOCK_LINE, confidence=99.0, text="second"),
            ]
        )

        result = engine.extract(b"bytes", "unknown_type")

        assert result.success is True
        assert result.ocr_data is not None
        assert result.ocr_data.extracted_text == "first\nsecond"

    def test_calls_provider_once(self) -> None:
        engine, provider = _make_engine([Block(id="1", block_type=BLOCK_LINE, confidence=90.0, text="x")])

        engine.extract(b"payload", "salary_slip")

        provider.analyze.assert_called_once_with(b"payload")


class TestKeyValueFields:
    def test_emits_field_at_threshold(self) -> None:
        engine, _provider = _make_engine(_key_value_pair(key_confidence=80.0))

        result = engine.extract(b"x", "unknown_type")

        assert result.ocr_data is not None
        [field] = result.ocr_data.extracted_fields
        assert field.field_name == "date_of_issue"
        assert field.value == "12/04/2024"
        assert field.data_type == "date"
        assert field.confidence == pytest.approx(0.8)
        assert field.bounding_box == BoundingBox(left=0.1, top=0.2, width=0.3, height=0.05)

    def test_drops_field_below_threshold(self) -> None:
        engine, _provider = _make_engine(_key_value_pair(key_confidence=79.9))

        result = engine.extract(b"x", "unknown_type")

        assert result.ocr_data is not None
        assert result.ocr_data.extracted_fields == []

    def test_empty_value_is_skipped(self) -> None:
        engine, _provider = _make_engine(_key_value_pair(key_confidence=95.0, value_text="   "))

        result = engine.extract(b"x", "unknown_type")

        assert result.ocr_data is not None
        assert result.ocr_data.extracted_fields == []

    def test_text_assembled_from_child_words(self) -> None:
        engine = OcrEngine(ExampleOcrAdapter())

        result = engine.extract(b"x", "unknown_type")

        assert result.ocr_data is not None
        [field] = result.ocr_data.extracted_fields
        assert field.field_name == "employee_name"
        assert field.value == "Ramesh Kumar"
        assert field.data_type == "text"


class TestTypeSpecificFields:
    def test_appends_income_fields_after_generic_pairs(self) -> None:
        engine = OcrEngine(ExampleOcrAdapter())

        result = engine.extract(b"x", "salary_slip")

        assert result.ocr_data is not None
        names = [f.field_name for f in result.ocr_data.extracted_fields]
        assert names == ["employee_name", "salary_amount", "employee_id"]
        assert result.ocr_data.provider == "example"

    def test_document_type_is_case_insensitive(self) -> None:
        engine = OcrEngine(ExampleOcrAdapter())

        result = engine.extract(b"x", "SALARY_SLIP")

        assert result.ocr_data is not None
        assert any(f.field_name == "employee_id" for f in result.ocr_data.extracted_fields)


class TestConfidence:
    def test_mean_of_all_blocks_rescaled(self) -> None:
        engine, _provider = _make_engine(
            [
                Block(id="1", block_type=BLOCK_LINE, confidence=90.0, text="a"),
                Block(id="2", block_type=BLOCK_LINE, confidence=80.0, text="b"),
                Block(id="3", block_type=BLOCK_WORD, text="no confidence"),
            ]
        )

        result = engine.extract(b"x", "unknown_type")

        assert result.confidence_score == pytest.approx(0.85)

    def test_zero_when_no_block_has_confidence(self) -> None:
        engine, _provider = _make_engine([Block(id="1", block_type=BLOCK_LINE, text="a")])

        result = engine.extract(b"x", "unknown_type")

        assert result.success is True
        assert result.confidence_score == 0.0


class TestFailures:
    def test_provider_error_returns_failed_result(self) -> None:
        engine, provider = _make_engine([])
        provider.analyze.side_effect = OcrProviderError("Textract call failed: AccessDenied")

        result = engine.extract(b"x", "salary_slip")

        assert result.success is False
        assert result.ocr_data is None
        assert result.confidence_score == 0.0
        assert result.error is not None
        assert "AccessDenied" in result.error

    def test_timeout_returns_failed_result(self) -> None:
        engine, provider = _make_engine([])
        provider.analyze.side_effect = OcrProviderTimeoutError("Textract call timed out")

        result = engine.extract(b"x", "salary_slip")

        assert result.success is False
        assert result.error == "Textract call timed out"

    def test_empty_block_list_returns_failed_result(self) -> None:
        engine, _provider = _make_engine([])

        result = engine.extract(b"x", "salary_slip")

        assert result.success is False
        assert result.error == "No blocks found in OCR response"

    @pytest.mark.parametrize(
        "block",
        [
            {"Id": "l1", "BlockType": "LINE", "Text": "SALARY SLIP", "Relationships": None},
            {"Id": "l1", "BlockType": "LINE", "Text": "SALARY SLIP", "Confidence": "high"},
        ],
    )
    def test_malformed_textract_payload_returns_failed_result(self, block: dict) -> None:
        client = MagicMock()
        client.analyze_document.return_value = {"Blocks": [block]}
        engine = OcrEngine(TextractAdapter(region="ap-south-1", timeout_seconds=5, client=client))

        result = engine.extract(b"x", "salary_slip")

        assert result.success is False
        assert result.confidence_score == 0.0
        assert result.error is not None
        assert "Malformed Textract block" in result.error
