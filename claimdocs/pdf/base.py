from abc import ABC, abstractmethod
from dataclasses import dataclass

from claimdocs.documents.models import Dimensions


@dataclass(frozen=True)
class PageInfo:
    """Page count and first-page size (PDF points, rounded) of a PDF."""

    page_count: int
    dimensions: Dimensions | None = None


class BasePdfInspector(ABC):
    """Contract for all PDF inspection adapters."""

    @abstractmethod
    def inspect(self, pdf_bytes: bytes) -> PageInfo:
        """Read page count and first-page dimensions from PDF bytes.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            PageInfo for the document.

        Raises:
            PdfInspectionError: if the PDF cannot be read or has no pages.
        """


def to_dimensions(width: float, height: float) -> Dimensions | None:
    rounded_width, rounded_height = round(width), round(height)
    if rounded_width <= 0 or rounded_height <= 0:
        return None
    return Dimensions(width=rounded_width, height=rounded_height)
