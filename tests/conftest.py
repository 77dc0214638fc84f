import io
from collections.abc import Callable, Generator
from contextlib import AbstractContextManager, contextmanager
from unittest.mock import MagicMock

import pytest
from reportlab.lib.pagesizes import A4, letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page letter-size salary slip."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "SALARY SLIP")
    c.drawString(72, 700, "Employee ID: EMP123456")
    c.drawString(72, 680, "Net Salary: 45,000.00")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a three-page A4 PDF."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    for number in range(1, 4):
        c.drawString(72, 720, f"Page {number} content")
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def mock_conn() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def connection_factory(
    mock_conn: MagicMock,
) -> Callable[[], AbstractContextManager[MagicMock]]:
    """Stand-in for database.connection.transaction yielding mock_conn."""

    @contextmanager
    def factory() -> Generator[MagicMock, None, None]:
        yield mock_conn

    return factory
