import io

import pdfplumber

from claimdocs.pdf.base import BasePdfInspector, PageInfo, to_dimensions
from claimdocs.pdf.exceptions import PdfInspectionError


class PdfPlumberInspector(BasePdfInspector):
    """Inspects PDFs using pdfplumber."""

    def inspect(self, pdf_bytes: bytes) -> PageInfo:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = pdf.pages
                if not pages:
                    raise PdfInspectionError("PDF has no pages")
                first = pages[0]
                return PageInfo(
                    page_count=len(pages),
                    dimensions=to_dimensions(float(first.width), float(first.height)),
                )
        except PdfInspectionError:
            raise
        except Exception as exc:
            raise PdfInspectionError(f"pdfplumber inspection failed: {exc}") from exc
