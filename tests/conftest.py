from __future__ import annotations

import io
from typing import Callable

import pytest
from docx import Document
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    def _make(size: tuple[int, int] = (40, 30), *, mode: str = "RGB", color=(200, 30, 30), fmt: str = "PNG") -> bytes:
        buffer = io.BytesIO()
        Image.new(mode, size, color).save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_docx() -> Callable[..., bytes]:
    def _make(*paragraphs: str, table: list[list[str]] | None = None, trailer: str | None = None) -> bytes:
        document = Document()
        for text in paragraphs:
            document.add_paragraph(text)
        if table:
            grid = document.add_table(rows=len(table), cols=len(table[0]))
            for row_index, row in enumerate(table):
                for col_index, value in enumerate(row):
                    grid.cell(row_index, col_index).text = value
        if trailer is not None:
            document.add_paragraph(trailer)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_text_pdf() -> Callable[..., bytes]:
    """Build a letter-sized PDF; each page is a list of ``(x, y, text)`` strings."""

    def _make(*pages: list[tuple[float, float, str]]) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=letter)
        for page in pages:
            pdf.setFont("Helvetica", 12)
            for x, y, text in page:
                pdf.drawString(x, y, text)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    return _make


@pytest.fixture
def docx_bytes(make_docx: Callable[..., bytes]) -> bytes:
    return make_docx("Hello from the report.", "Second paragraph.")


@pytest.fixture
def pdf_bytes(make_text_pdf: Callable[..., bytes]) -> bytes:
    return make_text_pdf([(72, 700, "Quarterly summary"), (72, 680, "Revenue grew")])
