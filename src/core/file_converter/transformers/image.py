"""Raster image re-encoding and image to PDF assembly."""

from __future__ import annotations

import io
from typing import Sequence

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..errors import CorruptInput, UnsupportedFormat
from ..formats import RASTER_ALIASES

DEFAULT_QUALITY = 90

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError)
_WRITABLE_MODES = {"1", "L", "LA", "P", "RGB", "RGBA"}


def open_image(data: bytes, *, label: str = "image") -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except _DECODE_ERRORS as exc:
        raise CorruptInput(f"The uploaded {label} could not be decoded: {exc}") from exc
    return image


def flatten(image: Image.Image, background: str = "white") -> Image.Image:
    """Return an RGB copy of *image* with any transparency composited onto *background*."""

    if image.mode == "P" and "transparency" in image.info:
        image = image.convert("RGBA")
    if image.mode in {"RGBA", "LA"}:
        rgba = image.convert("RGBA")
        canvas_image = Image.new("RGB", rgba.size, background)
        canvas_image.paste(rgba, mask=rgba.getchannel("A"))
        return canvas_image
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def reencode_image(data: bytes, target: str, *, quality: int = DEFAULT_QUALITY) -> bytes:
    raster = RASTER_ALIASES.get(target.strip().lower())
    if raster is None:
        raise UnsupportedFormat(target)
    image = open_image(data)
    if image.mode not in _WRITABLE_MODES:
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
    buffer = io.BytesIO()
    pillow_format = raster.pillow_format
    if pillow_format == "JPEG":
        flatten(image).save(buffer, format="JPEG", quality=quality)
    elif pillow_format == "WEBP":
        if image.mode not in {"RGB", "RGBA"}:
            image = image.convert("RGBA" if image.mode in {"LA", "P"} else "RGB")
        image.save(buffer, format="WEBP", quality=quality)
    elif pillow_format == "PNG":
        image.save(buffer, format="PNG", optimize=True)
    else:
        image.save(buffer, format=pillow_format)
    return buffer.getvalue()


def image_to_pdf(data: bytes) -> bytes:
    return images_to_pdf([data])


def images_to_pdf(images: Sequence[bytes]) -> bytes:
    """Build one PDF page per image, each page sized to the image's pixel dimensions."""

    if not images:
        raise CorruptInput("No images were provided")
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer)
    for position, data in enumerate(images, start=1):
        label = "image" if len(images) == 1 else f"image #{position}"
        image = flatten(open_image(data, label=label))
        width, height = image.size
        pdf.setPageSize((width, height))
        pdf.drawImage(ImageReader(image), 0, 0, width=width, height=height)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


__all__ = ["DEFAULT_QUALITY", "flatten", "image_to_pdf", "images_to_pdf", "open_image", "reencode_image"]
