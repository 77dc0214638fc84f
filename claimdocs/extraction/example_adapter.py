"""Example OCR provider adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseOcrProvider and register the provider in OcrProviderFactory.
"""

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
from claimdocs.extraction.provider_base import BaseOcrProvider


class ExampleOcrAdapter(BaseOcrProvider):
    """Example adapter that returns a fixed salary-slip layout.

    No network calls. Useful for local development and tests.
    """

    name = "example"

    BLOCKS: tuple[Block, ...] = (
        Block(id="l1", block_type=BLOCK_LINE, confidence=99.0, text="SALARY SLIP"),
        Block(id="l2", block_type=BLOCK_LINE, confidence=97.5, text="Employee ID: EMP123456"),
        Block(id="l3", block_type=BLOCK_LINE, confidence=96.0, text="Net Salary: 45,000.00"),
        Block(
            id="k1",
            block_type=BLOCK_KEY_VALUE_SET,
            confidence=95.0,
            entity_types=(ENTITY_KEY,),
            relationships=(
                Relationship(type=RELATIONSHIP_VALUE, ids=("v1",)),
                Relationship(type=RELATIONSHIP_CHILD, ids=("w1", "w2")),
            ),
        ),
        Block(
            id="v1",
            block_type=BLOCK_KEY_VALUE_SET,
            confidence=95.0,
            entity_types=(ENTITY_VALUE,),
            relationships=(Relationship(type=RELATIONSHIP_CHILD, ids=("w3", "w4")),),
        ),
        Block(id="w1", block_type=BLOCK_WORD, confidence=99.0, text="Employee"),
        Block(id="w2", block_type=BLOCK_WORD, confidence=99.0, text="Name"),
        Block(id="w3", block_type=BLOCK_WORD, confidence=98.0, text="Ramesh"),
        Block(id="w4", block_type=BLOCK_WORD, confidence=98.0, text="Kumar"),
    )

    def analyze(self, data: bytes) -> AnalysisResult:
        _ = data
        return AnalysisResult(
            blocks=list(self.BLOCKS),
            raw_response={"provider": self.name, "block_count": len(self.BLOCKS)},
        )
