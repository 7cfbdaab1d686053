from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum

from .config import AppConfig
from .errors import (
    ConversionError,
    ConversionFailed,
    MissingFields,
    PayloadTooLarge,
    TooManyFiles,
    UnsupportedConversion,
    UnsupportedFormat,
)
from .executors import run_sync
from .formats import MIME_TYPES, FormatKind, FormatTag, RasterKind, resolve_format
from .models import AuditRecord, ConversionRequest, ConversionResult, ConversionStatus, ConvertedFile, Upload
from .recorder import UsageRecorder
from .transformers import Transformers
from .utils import replace_extension

logger = logging.getLogger(__name__)

COMBINED_FILENAME = "combined.pdf"
PDF_RASTER_TARGETS = frozenset({RasterKind.JPG, RasterKind.PNG})


class TransformerKind(str, Enum):
    WORD_TO_PDF = "word-to-pdf"
    PDF_TO_WORD = "pdf-to-word"
    PDF_TO_IMAGE = "pdf-to-image"
    IMAGE_TO_PDF = "image-to-pdf"
    IMAGES_TO_PDF = "images-to-pdf"
    IMAGE_REENCODE = "image-reencode"


SUPPORTED_PAIRS: tuple[tuple[str, str, TransformerKind], ...] = (
    ("docx, doc", "pdf", TransformerKind.WORD_TO_PDF),
    ("pdf", "docx", TransformerKind.PDF_TO_WORD),
    ("pdf", "jpg, png", TransformerKind.PDF_TO_IMAGE),
    ("image, image/*, jpg, png, webp, gif", "pdf", TransformerKind.IMAGE_TO_PDF),
    ("image, image/*, jpg, png, webp, gif", "jpg, png, webp, gif", TransformerKind.IMAGE_REENCODE),
)


def select_transformer(source: str, target: str, upload_count: int = 1) -> TransformerKind:
    """Pick the transformer for a declared pair; the first matching rule wins."""

    src = resolve_format(source)
    dst = resolve_format(target)
    if src is None or dst is None:
        raise UnsupportedConversion(source, target)
    if src.is_word and dst.kind is FormatKind.PDF:
        return TransformerKind.WORD_TO_PDF
    if src.kind is FormatKind.PDF and dst.kind is FormatKind.DOCX:
        return TransformerKind.PDF_TO_WORD
    if src.kind is FormatKind.PDF and dst.kind is FormatKind.RASTER and dst.raster in PDF_RASTER_TARGETS:
        return TransformerKind.PDF_TO_IMAGE
    if src.is_image and dst.kind is FormatKind.PDF:
        return TransformerKind.IMAGES_TO_PDF if upload_count > 1 else TransformerKind.IMAGE_TO_PDF
    if src.is_image and dst.kind is FormatKind.RASTER:
        return TransformerKind.IMAGE_REENCODE
    raise UnsupportedConversion(source, target)


@dataclass(frozen=True, slots=True)
class DispatchPlan:
    kind: TransformerKind
    target: FormatTag
    payloads: tuple[Upload, ...]
    mime_type: str
    filename: str


def _raster_of(target: FormatTag) -> RasterKind:
    if target.raster is None:
        raise UnsupportedFormat(target.kind.value)
    return target.raster


def _output_type(kind: TransformerKind, target: FormatTag) -> tuple[str, str]:
    if kind is TransformerKind.PDF_TO_WORD:
        return MIME_TYPES[FormatKind.DOCX], ".docx"
    if kind in {TransformerKind.PDF_TO_IMAGE, TransformerKind.IMAGE_REENCODE}:
        raster = _raster_of(target)
        return raster.mime_type, raster.extension
    return MIME_TYPES[FormatKind.PDF], ".pdf"


class ConversionDispatcher:
    """Maps one conversion request onto exactly one transformer call.

    Every request that carried at least one upload produces one audit record,
    whether it succeeded, failed validation, or failed inside a transformer.
    """

    def __init__(
        self,
        config: AppConfig,
        recorder: UsageRecorder,
        *,
        transformers: Transformers | None = None,
    ) -> None:
        self._config = config
        self._recorder = recorder
        self._transformers = transformers or Transformers()

    select = staticmethod(select_transformer)

    def plan(self, request: ConversionRequest) -> DispatchPlan:
        if not request.source or not request.target:
            raise MissingFields()
        if not request.uploads:
            raise MissingFields("File is required")
        kind = select_transformer(request.source, request.target, len(request.uploads))
        if kind in {TransformerKind.IMAGE_TO_PDF, TransformerKind.IMAGES_TO_PDF}:
            payloads = request.uploads
        elif request.file is not None:
            payloads = (request.file,)
        else:
            payloads = request.files
        if len(payloads) > 1 and kind is not TransformerKind.IMAGES_TO_PDF:
            raise TooManyFiles(request.source, request.target)
        limit = self._config.max_file_size_bytes
        for upload in payloads:
            if upload.size > limit:
                raise PayloadTooLarge(upload.filename, limit)

        target = resolve_format(request.target)
        if target is None:
            raise UnsupportedConversion(request.source, request.target)
        mime_type, extension = _output_type(kind, target)
        if kind is TransformerKind.IMAGES_TO_PDF:
            filename = COMBINED_FILENAME
        else:
            filename = replace_extension(payloads[0].filename, extension)
        return DispatchPlan(kind=kind, target=target, payloads=payloads, mime_type=mime_type, filename=filename)

    def execute(self, plan: DispatchPlan) -> ConvertedFile:
        return ConvertedFile(data=self._transform(plan), mime_type=plan.mime_type, filename=plan.filename)

    def _transform(self, plan: DispatchPlan) -> bytes:
        transformers = self._transformers
        settings = self._config.transform
        data = plan.payloads[0].data
        if plan.kind is TransformerKind.WORD_TO_PDF:
            return transformers.word_to_pdf(data)
        if plan.kind is TransformerKind.PDF_TO_WORD:
            return transformers.pdf_to_word(data, tolerance=settings.line_tolerance)
        if plan.kind is TransformerKind.PDF_TO_IMAGE:
            return transformers.pdf_to_image(
                data,
                fmt=_raster_of(plan.target).value,
                dpi=settings.raster_dpi,
                quality=settings.image_quality,
            )
        if plan.kind is TransformerKind.IMAGE_TO_PDF:
            return transformers.image_to_pdf(data)
        if plan.kind is TransformerKind.IMAGES_TO_PDF:
            return transformers.images_to_pdf([upload.data for upload in plan.payloads])
        if plan.kind is TransformerKind.IMAGE_REENCODE:
            raster = _raster_of(plan.target)
            return transformers.reencode_image(data, raster.value, quality=settings.image_quality)
        raise ConversionFailed(f"No transformer registered for {plan.kind.value}")

    async def dispatch(self, request: ConversionRequest) -> ConversionResult:
        started = time.perf_counter()
        plan: DispatchPlan | None = None
        try:
            plan = self.plan(request)
            converted = await run_sync(self.execute, plan)
        except ConversionError as exc:
            logger.warning("Conversion %s failed: %s - %s", request.conversion_type, exc.code, exc)
            result = ConversionResult(error=exc)
        except Exception as exc:
            logger.exception("Unexpected error during conversion %s", request.conversion_type)
            result = ConversionResult(error=ConversionFailed(f"Failed to convert file: {exc}"))
        else:
            result = ConversionResult(file=converted)
        result.duration_ms = int((time.perf_counter() - started) * 1000)

        audited = plan.payloads[0] if plan is not None else request.primary
        if audited is not None:
            status = ConversionStatus.SUCCESS if result.ok else ConversionStatus.FAILED
            await self._recorder.record(
                AuditRecord.for_request(
                    request,
                    status,
                    upload=audited,
                    duration_ms=result.duration_ms,
                    error_message=result.error.message if result.error else None,
                )
            )
        return result


__all__ = [
    "COMBINED_FILENAME",
    "ConversionDispatcher",
    "DispatchPlan",
    "SUPPORTED_PAIRS",
    "TransformerKind",
    "select_transformer",
]
