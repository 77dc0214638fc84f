from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from claimdocs.documents.exceptions import OcrProviderError, OcrProviderTimeoutError
from claimdocs.documents.models import BoundingBox
from claimdocs.extraction.blocks import AnalysisResult, Block, Relationship
from claimdocs.extraction.provider_base import BaseOcrProvider


class TextractAdapter(BaseOcrProvider):
    """OCR provider adapter built on AWS Textract AnalyzeDocument (FORMS, TABLES)."""

    name = "aws-textract"

    def __init__(
        self,
        *,
        region: str,
        timeout_seconds: int,
        access_key_id: str = "",
        secret_access_key: str = "",
        client: Any = None,
    ) -> None:
        if client is None:
            client = boto3.client(
                "textract",
                region_name=region,
                aws_access_key_id=access_key_id or None,
                aws_secret_access_key=secret_access_key or None,
                config=Config(
                    connect_timeout=timeout_seconds,
                    read_timeout=timeout_seconds,
                    retries={"max_attempts": 2},
                ),
            )
        self._client = client

    def analyze(self, data: bytes) -> AnalysisResult:
        try:
            response = self._client.analyze_document(
                Document={"Bytes": data},
                FeatureTypes=["FORMS", "TABLES"],
            )
        except (ReadTimeoutError, ConnectTimeoutError) as exc:
            raise OcrProviderTimeoutError(f"Textract call timed out: {exc}") from exc
        except (ClientError, BotoCoreError) as exc:
            raise OcrProviderError(f"Textract call failed: {exc}") from exc

        raw_blocks = response.get("Blocks")
        if not raw_blocks:
            raise OcrProviderError("No blocks found in OCR response")
        return AnalysisResult(
            blocks=[_parse_block(raw, i) for i, raw in enumerate(raw_blocks)],
            raw_response=response,
        )


def _parse_block(raw: Any, index: int) -> Block:
    if not isinstance(raw, dict) or "Id" not in raw or "BlockType" not in raw:
        raise OcrProviderError(f"Malformed Textract block at index {index}")
    try:
        confidence = raw.get("Confidence")
        text = raw.get("Text")
        if text is not None and not isinstance(text, str):
            raise TypeError(f"Text must be a string, got {type(text).__name__}")
        entity_types = raw.get("EntityTypes") or []
        if not isinstance(entity_types, list):
            raise TypeError("EntityTypes must be a list")
        return Block(
            id=raw["Id"],
            block_type=raw["BlockType"],
            confidence=float(confidence) if confidence is not None else None,
            text=text,
            relationships=tuple(
                Relationship(type=rel.get("Type", ""), ids=tuple(rel.get("Ids") or []))
                for rel in raw.get("Relationships") or []
            ),
            entity_types=tuple(entity_types),
            bounding_box=_parse_bounding_box(raw.get("Geometry")),
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise OcrProviderError(f"Malformed Textract block at index {index}: {exc}") from exc


def _parse_bounding_box(geometry: Any) -> BoundingBox | None:
    if not isinstance(geometry, dict) or not geometry.get("BoundingBox"):
        return None
    box = geometry["BoundingBox"]
    return BoundingBox(
        left=float(box.get("Left", 0.0)),
        top=float(box.get("Top", 0.0)),
        width=float(box.get("Width", 0.0)),
        height=float(box.get("Height", 0.0)),
    )
