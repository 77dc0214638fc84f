from unittest.mock import MagicMock

import pytest

from claimdocs.pdf.factory import PdfInspectorFactory
from claimdocs.pdf.pdfplumber_adapter import PdfPlumberInspector
from claimdocs.pdf.pymupdf_adapter import PyMuPdfInspector


def _make_settings(pdf_engine: str) -> MagicMock:
    return MagicMock(pdf_engine=pdf_engine)


class TestPdfInspectorFactory:
    def test_creates_pdfplumber_inspector(self) -> None:
        inspector = PdfInspectorFactory.create(_make_settings("pdfplumber"))
        assert isinstance(inspector, PdfPlumberInspector)

    def test_creates_pymupdf_inspector(self) -> None:
        inspector = PdfInspectorFactory.create(_make_settings("pymupdf"))
        assert isinstance(inspector, PyMuPdfInspector)

    def test_is_case_insensitive(self) -> None:
        inspector = PdfInspectorFactory.create(_make_settings("PyMuPDF"))
        assert isinstance(inspector, PyMuPdfInspector)

    def test_raises_for_unknown_engine(self) -> None:
        with pytest.raises(ValueError, match="Unknown PDF engine"):
            PdfInspectorFactory.create(_make_settings("unknown"))
