import pymupdf

from claimdocs.pdf.base import BasePdfInspector, PageInfo, to_dimensions
from claimdocs.pdf.exceptions import PdfInspectionError


class PyMuPdfInspector(BasePdfInspector):
    """Inspects PDFs using PyMuPDF."""

    def inspect(self, pdf_bytes: bytes) -> PageInfo:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                if doc.page_count == 0:
                    raise PdfInspectionError("PDF has no pages")
                rect = doc[0].rect
                return PageInfo(
                    page_count=doc.page_count,
                    dimensions=to_dimensions(rect.width, rect.height),
                )
        except PdfInspectionError:
            raise
        except Exception as exc:
            raise PdfInspectionError(f"pymupdf inspection failed: {exc}") from exc
