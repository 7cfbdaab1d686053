"""Domain models for conversion requests, results and audit records."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import ConversionError
from .identity import Identity


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConversionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Upload:
    filename: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class ConversionRequest:
    """A declared ``source -> target`` conversion with its uploaded payloads."""

    source: str
    target: str
    file: Upload | None = None
    files: tuple[Upload, ...] = ()
    identity: Identity = field(default_factory=Identity)

    @property
    def uploads(self) -> tuple[Upload, ...]:
        if self.files:
            return self.files
        if self.file is not None:
            return (self.file,)
        return ()

    @property
    def primary(self) -> Upload | None:
        if self.file is not None:
            return self.file
        return self.files[0] if self.files else None

    @property
    def conversion_type(self) -> str:
        return f"{self.source}-to-{self.target}"


@dataclass(frozen=True, slots=True)
class ConvertedFile:
    data: bytes
    mime_type: str
    filename: str


@dataclass(slots=True)
class ConversionResult:
    """Outcome of one dispatch: exactly one of ``file`` or ``error`` is set."""

    file: ConvertedFile | None = None
    error: ConversionError | None = None
    duration_ms: int = 0

    def __post_init__(self) -> None:
        if (self.file is None) == (self.error is None):
            raise ValueError("ConversionResult requires exactly one of file or error")

    @property
    def ok(self) -> bool:
        return self.file is not None

    def unwrap(self) -> ConvertedFile:
        if self.file is None:
            raise self.error or ValueError("ConversionResult has neither file nor error")
        return self.file


@dataclass(slots=True)
class AuditRecord:
    conversion_type: str
    from_format: str
    to_format: str
    file_name: str
    file_size: int
    status: ConversionStatus
    error_message: str | None = None
    duration_ms: int | None = None
    user_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def succeeded(self) -> bool:
        return self.status is ConversionStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        payload["created_at"] = self.created_at.isoformat()
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditRecord":
        created_raw = data.get("created_at")
        created_at = datetime.fromisoformat(str(created_raw)) if created_raw else _utc_now()
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        duration = data.get("duration_ms")
        return cls(
            conversion_type=str(data.get("conversion_type", "")),
            from_format=str(data.get("from_format", "")),
            to_format=str(data.get("to_format", "")),
            file_name=str(data.get("file_name", "unknown")),
            file_size=int(data.get("file_size", 0)),
            status=ConversionStatus(str(data.get("status", ConversionStatus.SUCCESS.value))),
            error_message=str(data["error_message"]) if data.get("error_message") else None,
            duration_ms=int(duration) if duration is not None else None,
            user_id=str(data["user_id"]) if data.get("user_id") else None,
            ip_address=str(data["ip_address"]) if data.get("ip_address") else None,
            user_agent=str(data["user_agent"]) if data.get("user_agent") else None,
            created_at=created_at,
        )

    @classmethod
    def for_request(
        cls,
        request: ConversionRequest,
        status: ConversionStatus,
        *,
        duration_ms: int,
        error_message: str | None = None,
        upload: Upload | None = None,
    ) -> "AuditRecord":
        primary = upload or request.primary
        return cls(
            conversion_type=request.conversion_type,
            from_format=request.source,
            to_format=request.target,
            file_name=primary.filename if primary else "unknown",
            file_size=primary.size if primary else 0,
            status=status,
            error_message=error_message,
            duration_ms=duration_ms,
            user_id=request.identity.account_id,
            ip_address=request.identity.ip_address,
            user_agent=request.identity.user_agent,
        )


__all__ = [
    "AuditRecord",
    "ConversionRequest",
    "ConversionResult",
    "ConversionStatus",
    "ConvertedFile",
    "Upload",
]
