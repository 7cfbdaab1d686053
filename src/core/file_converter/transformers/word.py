"""DOCX text extraction and plain-text PDF layout."""

from __future__ import annotations

import io
import re
import zipfile
from typing import Iterator

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from ..errors import CorruptInput, EmptyDocument, UnsupportedLegacyFormat
from ..formats import is_legacy_doc, is_zip

FONT_NAME = "Helvetica"
FONT_SIZE = 12
LINE_HEIGHT = FONT_SIZE + 5
PARAGRAPH_SPACING = LINE_HEIGHT * 0.5
MARGIN = 50

TYPOGRAPHIC_REPLACEMENTS: dict[str, str] = {
    "→": "->",
    "←": "<-",
    "↑": "^",
    "↓": "v",
    "•": "*",
    "–": "-",
    "—": "--",
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
    "…": "...",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "©": "(c)",
    "®": "(R)",
    "™": "(TM)",
    "°": " degrees",
    "±": "+/-",
    "×": "x",
    "÷": "/",
    "\t": " ",
}

UNPRINTABLE_RE = re.compile(r"[^\n\x20-\x7e\xa0-\xff]")
PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def sanitize_text(text: str) -> str:
    """Map typographic characters to ASCII and drop anything the base PDF fonts cannot encode."""

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    for original, replacement in TYPOGRAPHIC_REPLACEMENTS.items():
        text = text.replace(original, replacement)
    return UNPRINTABLE_RE.sub("", text)


def _iter_block_text(document) -> Iterator[str]:  # type: ignore[no-untyped-def]
    for child in document.element.body.iterchildren():
        if child.tag == qn("w:p"):
            yield Paragraph(child, document).text
        elif child.tag == qn("w:tbl"):
            for row in Table(child, document).rows:
                for cell in row.cells:
                    for paragraph in cell.paragraphs:
                        yield paragraph.text


def extract_docx_text(data: bytes) -> str:
    if is_legacy_doc(data):
        raise UnsupportedLegacyFormat()
    if not is_zip(data):
        raise CorruptInput("The uploaded file is not a valid .docx document")
    try:
        document = Document(io.BytesIO(data))
    except (PackageNotFoundError, KeyError, ValueError, zipfile.BadZipFile) as exc:
        raise CorruptInput(f"Failed to extract text from DOCX file: {exc}") from exc
    return "\n\n".join(_iter_block_text(document))


def wrap_words(text: str, max_width: float, *, font_name: str = FONT_NAME, font_size: float = FONT_SIZE) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and stringWidth(candidate, font_name, font_size) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def render_text_pdf(text: str) -> bytes:
    """Lay *text* out as wrapped paragraphs on US letter pages."""

    buffer = io.BytesIO()
    page_width, page_height = letter
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setFont(FONT_NAME, FONT_SIZE)
    max_width = page_width - 2 * MARGIN
    y = page_height - MARGIN

    paragraphs = [block.strip() for block in PARAGRAPH_SPLIT_RE.split(text) if block.strip()]
    for index, paragraph in enumerate(paragraphs):
        for line in wrap_words(paragraph, max_width):
            if y < MARGIN:
                pdf.showPage()
                pdf.setFont(FONT_NAME, FONT_SIZE)
                y = page_height - MARGIN
            pdf.drawString(MARGIN, y, line)
            y -= LINE_HEIGHT
        if index < len(paragraphs) - 1:
            y -= PARAGRAPH_SPACING
    pdf.save()
    return buffer.getvalue()


def word_to_pdf(data: bytes) -> bytes:
    text = extract_docx_text(data)
    if not text.strip():
        raise EmptyDocument()
    sanitized = sanitize_text(text)
    if not sanitized.strip():
        raise EmptyDocument()
    return render_text_pdf(sanitized)


__all__ = ["extract_docx_text", "render_text_pdf", "sanitize_text", "word_to_pdf", "wrap_words"]
