from abc import ABC, abstractmethod
from dataclasses import dataclass

from claimdocs.documents.models import Document, ExtractionResult
from claimdocs.pdf.base import PageInfo


@dataclass(slots=True)
class PipelineContext:
    job_id: int
    document_id: str
    document_version: int
    document: Document | None = None
    raw_bytes: bytes = b""
    extraction: ExtractionResult | None = None
    page_info: PageInfo | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
