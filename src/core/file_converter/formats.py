from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from enum import Enum


class RasterKind(str, Enum):
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def mime_type(self) -> str:
        return "image/jpeg" if self is RasterKind.JPG else f"image/{self.value}"

    @property
    def pillow_format(self) -> str:
        return "JPEG" if self is RasterKind.JPG else self.value.upper()


class FormatKind(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    DOC = "doc"
    IMAGE = "image"
    RASTER = "raster"


@dataclass(frozen=True, slots=True)
class FormatTag:
    kind: FormatKind
    raster: RasterKind | None = None

    @property
    def is_image(self) -> bool:
        return self.kind in {FormatKind.IMAGE, FormatKind.RASTER}

    @property
    def is_word(self) -> bool:
        return self.kind in {FormatKind.DOCX, FormatKind.DOC}


RASTER_ALIASES: dict[str, RasterKind] = {
    "jpg": RasterKind.JPG,
    "jpeg": RasterKind.JPG,
    "png": RasterKind.PNG,
    "webp": RasterKind.WEBP,
    "gif": RasterKind.GIF,
}

DOCUMENT_TAGS: dict[str, FormatKind] = {
    "pdf": FormatKind.PDF,
    "docx": FormatKind.DOCX,
    "doc": FormatKind.DOC,
}

MIME_TYPES: dict[FormatKind, str] = {
    FormatKind.PDF: "application/pdf",
    FormatKind.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    FormatKind.DOC: "application/msword",
}

OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def resolve_format(value: str | None) -> FormatTag | None:
    """Resolve a declared format string into a :class:`FormatTag`.

    ``image`` and ``image/<subtype>`` resolve to :attr:`FormatKind.IMAGE`,
    bare raster names (``jpg``, ``png``...) to :attr:`FormatKind.RASTER`.
    Unknown values return ``None``.
    """

    if not value:
        return None
    normalized = value.strip().lower()
    if normalized in DOCUMENT_TAGS:
        return FormatTag(DOCUMENT_TAGS[normalized])
    if normalized in RASTER_ALIASES:
        return FormatTag(FormatKind.RASTER, RASTER_ALIASES[normalized])
    if normalized == "image":
        return FormatTag(FormatKind.IMAGE)
    if normalized.startswith("image/"):
        subtype = normalized.split("/", 1)[1]
        return FormatTag(FormatKind.IMAGE, RASTER_ALIASES.get(subtype))
    return None


def is_legacy_doc(data: bytes) -> bool:
    return data[: len(OLE2_SIGNATURE)] == OLE2_SIGNATURE


def is_zip(data: bytes) -> bool:
    return zipfile.is_zipfile(io.BytesIO(data))


def is_pdf(data: bytes) -> bool:
    return b"%PDF-" in data[:1024]


__all__ = [
    "FormatKind",
    "FormatTag",
    "MIME_TYPES",
    "RasterKind",
    "is_legacy_doc",
    "is_pdf",
    "is_zip",
    "resolve_format",
]
