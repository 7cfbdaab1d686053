"""Error taxonomy for the conversion pipeline.

Every error carries a machine-readable ``code``, a human-readable message and
the HTTP status the service answers with.
"""

from __future__ import annotations


class ConversionError(RuntimeError):
    status_code: int = 500

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ConversionError):
    status_code = 400


class MissingFields(ValidationError):
    def __init__(self, message: str = "Missing required fields") -> None:
        super().__init__("MISSING_FIELDS", message)


class PayloadTooLarge(ValidationError):
    def __init__(self, filename: str, limit_bytes: int) -> None:
        limit_mb = limit_bytes // (1024 * 1024)
        super().__init__("SIZE_LIMIT", f"File {filename} exceeds {limit_mb}MB limit")
        self.filename = filename


class UnsupportedConversion(ValidationError):
    def __init__(self, source: str, target: str) -> None:
        super().__init__("UNSUPPORTED_CONVERSION", f"Conversion from {source} to {target} not supported")
        self.source = source
        self.target = target


class TooManyFiles(ValidationError):
    def __init__(self, source: str, target: str) -> None:
        super().__init__(
            "TOO_MANY_FILES",
            f"Multiple files are only accepted when combining images into a PDF, not {source} to {target}",
        )


class UnsupportedFormat(ValidationError):
    def __init__(self, target: str) -> None:
        super().__init__("UNSUPPORTED_FORMAT", f"Unsupported format: {target}")


class PageOutOfRange(ValidationError):
    def __init__(self, page: int, page_count: int) -> None:
        super().__init__("PAGE_OUT_OF_RANGE", f"Page {page + 1} does not exist; the PDF has {page_count} page(s)")


class TransformationError(ConversionError):
    status_code = 500


class CorruptInput(TransformationError):
    def __init__(self, message: str = "The uploaded file could not be read as an image") -> None:
        super().__init__("CORRUPT_INPUT", message)


class CorruptPdf(TransformationError):
    def __init__(self, message: str = "Failed to convert PDF. The PDF might be corrupted.") -> None:
        super().__init__("CORRUPT_PDF", message)


class ConversionFailed(TransformationError):
    def __init__(self, message: str = "Failed to convert file") -> None:
        super().__init__("CONVERSION_FAILED", message)


class UnsupportedLegacyFormat(TransformationError):
    status_code = 415

    def __init__(self) -> None:
        super().__init__(
            "LEGACY_DOC",
            "Old .doc format files are not supported. Please convert to .docx format first.",
        )


class EmptyDocument(TransformationError):
    status_code = 422

    def __init__(self) -> None:
        super().__init__("EMPTY_DOCUMENT", "Document appears to be empty or couldn't extract text")


class NoExtractableText(TransformationError):
    status_code = 422

    def __init__(self) -> None:
        super().__init__(
            "NO_TEXT",
            "Could not extract text from PDF. The PDF might be scanned or image-based.",
        )


class QuotaExceeded(ConversionError):
    status_code = 429

    def __init__(self, limit: int) -> None:
        super().__init__(
            "QUOTA_EXCEEDED",
            f"Daily conversion limit reached ({limit} files/day). "
            "Upgrade to Premium for unlimited conversions.",
        )
        self.limit = limit


class StorageUnavailable(RuntimeError):
    """Raised by audit stores when the backing storage cannot be reached."""


class AuditWriteError(RuntimeError):
    """Raised by audit stores when a record cannot be persisted."""


__all__ = [
    "AuditWriteError",
    "ConversionError",
    "ConversionFailed",
    "CorruptInput",
    "CorruptPdf",
    "EmptyDocument",
    "MissingFields",
    "NoExtractableText",
    "PageOutOfRange",
    "PayloadTooLarge",
    "QuotaExceeded",
    "StorageUnavailable",
    "TooManyFiles",
    "TransformationError",
    "UnsupportedConversion",
    "UnsupportedFormat",
    "UnsupportedLegacyFormat",
    "ValidationError",
]
