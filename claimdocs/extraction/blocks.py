from dataclasses import dataclass, field
from typing import Any

from claimdocs.documents.models import BoundingBox

BLOCK_LINE = "LINE"
BLOCK_WORD = "WORD"
BLOCK_KEY_VALUE_SET = "KEY_VALUE_SET"

ENTITY_KEY = "KEY"
ENTITY_VALUE = "VALUE"

RELATIONSHIP_CHILD = "CHILD"
RELATIONSHIP_VALUE = "VALUE"


@dataclass(frozen=True)
class Relationship:
    type: str
    ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Block:
    """One unit of OCR provider output. Confidence is on a 0-100 scale."""

    id: str
    block_type: str
    confidence: float | None = None
    text: str | None = None
    relationships: tuple[Relationship, ...] = ()
    entity_types: tuple[str, ...] = ()
    bounding_box: BoundingBox | None = None

    def related_ids(self, relationship_type: str) -> tuple[str, ...]:
        for relationship in self.relationships:
            if relationship.type == relationship_type:
                return relationship.ids
        return ()


@dataclass
class AnalysisResult:
    """Blocks returned by a provider plus its untouched response for auditing."""

    blocks: list[Block] = field(default_factory=list)
    raw_response: Any = None
