"""Stateless byte-buffer format transformers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from .image import image_to_pdf, images_to_pdf, reencode_image
from .pdf import extract_pdf_text, group_lines, pdf_to_image, pdf_to_images, pdf_to_word
from .word import extract_docx_text, sanitize_text, word_to_pdf


@dataclass(frozen=True, slots=True)
class Transformers:
    """The transformer functions a dispatcher calls; swapped out in tests."""

    word_to_pdf: Callable[[bytes], bytes] = word_to_pdf
    pdf_to_word: Callable[..., bytes] = pdf_to_word
    pdf_to_image: Callable[..., bytes] = pdf_to_image
    image_to_pdf: Callable[[bytes], bytes] = image_to_pdf
    images_to_pdf: Callable[[Sequence[bytes]], bytes] = images_to_pdf
    reencode_image: Callable[..., bytes] = reencode_image


__all__ = [
    "Transformers",
    "extract_docx_text",
    "extract_pdf_text",
    "group_lines",
    "image_to_pdf",
    "images_to_pdf",
    "pdf_to_image",
    "pdf_to_images",
    "pdf_to_word",
    "reencode_image",
    "sanitize_text",
    "word_to_pdf",
]
