"""PDF text extraction, PDF to DOCX and PDF rasterization."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from pathlib import Path

import fitz  # PyMuPDF
from docx import Document
from docx.shared import Pt
from PIL import Image

from ..errors import ConversionError, CorruptPdf, NoExtractableText, PageOutOfRange, UnsupportedFormat
from ..formats import RasterKind, is_pdf
from ..utils import scratch_dir

DEFAULT_DPI = 150
DEFAULT_QUALITY = 90
LINE_TOLERANCE = 2.0
PAGE_BREAK = "\n\n--- Page Break ---\n\n"
RASTER_TARGETS = {"jpg": RasterKind.JPG, "jpeg": RasterKind.JPG, "png": RasterKind.PNG}

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


@dataclass(frozen=True, slots=True)
class TextFragment:
    x: float
    y: float
    text: str


def _open_pdf(source: bytes | Path) -> fitz.Document:
    if isinstance(source, bytes) and not is_pdf(source):
        raise CorruptPdf("Invalid PDF file format")
    try:
        if isinstance(source, Path):
            document = fitz.open(source)
        else:
            document = fitz.open(stream=source, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise CorruptPdf(f"Failed to open PDF. The PDF might be corrupted: {exc}") from exc
    if document.page_count == 0:
        document.close()
        raise CorruptPdf("The PDF does not contain any pages")
    return document


def group_lines(fragments: list[TextFragment], tolerance: float = LINE_TOLERANCE) -> list[str]:
    """Order fragments top to bottom and merge those within *tolerance* into one line."""

    if not fragments:
        return []
    ordered = sorted(fragments, key=lambda fragment: fragment.y)
    lines: list[list[TextFragment]] = [[ordered[0]]]
    line_y = ordered[0].y
    for fragment in ordered[1:]:
        if abs(fragment.y - line_y) > tolerance:
            lines.append([])
            line_y = fragment.y
        lines[-1].append(fragment)
    return [" ".join(item.text for item in sorted(line, key=lambda item: item.x)) for line in lines]


def _page_fragments(page: fitz.Page) -> list[TextFragment]:
    fragments: list[TextFragment] = []
    for block in page.get_text("dict").get("blocks", []):
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text", "").strip()
                if not text:
                    continue
                x0, y0, _, _ = span.get("bbox", (0.0, 0.0, 0.0, 0.0))
                fragments.append(TextFragment(x=float(x0), y=float(y0), text=text))
    return fragments


def extract_pdf_text(data: bytes, *, tolerance: float = LINE_TOLERANCE) -> str:
    document = _open_pdf(data)
    try:
        pages = ["\n".join(group_lines(_page_fragments(page), tolerance)) for page in document]
    except RuntimeError as exc:
        raise CorruptPdf(f"PDF parsing error: {exc}") from exc
    finally:
        document.close()
    text = PAGE_BREAK.join(pages).strip()
    if not text or not text.replace("--- Page Break ---", "").strip():
        raise NoExtractableText()
    return text


def text_to_docx(text: str) -> bytes:
    document = Document()
    blocks = [block for block in _PARAGRAPH_SPLIT_RE.split(text) if block.strip()] or [text.strip()]
    for block in blocks:
        paragraph = document.add_paragraph()
        lines = block.split("\n")
        for index, line in enumerate(lines):
            run = paragraph.add_run(line.strip())
            run.font.size = Pt(12)
            if index < len(lines) - 1:
                run.add_break()
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def pdf_to_word(data: bytes, *, tolerance: float = LINE_TOLERANCE) -> bytes:
    return text_to_docx(extract_pdf_text(data, tolerance=tolerance))


def _raster_kind(fmt: str) -> RasterKind:
    raster = RASTER_TARGETS.get(fmt.strip().lower())
    if raster is None:
        raise UnsupportedFormat(fmt)
    return raster


def _render_pages(
    data: bytes,
    pages: list[int] | None,
    raster: RasterKind,
    *,
    dpi: int,
    quality: int,
) -> list[bytes]:
    if not is_pdf(data):
        raise CorruptPdf("Invalid PDF file format")
    with scratch_dir(prefix="pdf-convert-") as workdir:
        source = workdir / "input.pdf"
        source.write_bytes(data)
        document = _open_pdf(source)
        try:
            indexes = list(range(document.page_count)) if pages is None else pages
            for index in indexes:
                if index < 0 or index >= document.page_count:
                    raise PageOutOfRange(index, document.page_count)
            outputs: list[Path] = []
            for index in indexes:
                pixmap = document[index].get_pixmap(dpi=dpi, alpha=False)
                image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
                target = workdir / f"output-{index + 1:04d}{raster.extension}"
                if raster is RasterKind.JPG:
                    image.save(target, format="JPEG", quality=quality)
                else:
                    image.save(target, format="PNG")
                outputs.append(target)
        except ConversionError:
            raise
        except RuntimeError as exc:
            raise CorruptPdf(f"Failed to convert PDF to image: {exc}") from exc
        finally:
            document.close()
        return [path.read_bytes() for path in outputs]


def pdf_to_image(
    data: bytes,
    *,
    page: int = 0,
    fmt: str = "png",
    dpi: int = DEFAULT_DPI,
    quality: int = DEFAULT_QUALITY,
) -> bytes:
    return _render_pages(data, [page], _raster_kind(fmt), dpi=dpi, quality=quality)[0]


def pdf_to_images(
    data: bytes,
    *,
    fmt: str = "png",
    dpi: int = DEFAULT_DPI,
    quality: int = DEFAULT_QUALITY,
) -> list[bytes]:
    images = _render_pages(data, None, _raster_kind(fmt), dpi=dpi, quality=quality)
    if not images:
        raise CorruptPdf("No images were generated from PDF")
    return images


__all__ = [
    "PAGE_BREAK",
    "TextFragment",
    "extract_pdf_text",
    "group_lines",
    "pdf_to_image",
    "pdf_to_images",
    "pdf_to_word",
    "text_to_docx",
]
