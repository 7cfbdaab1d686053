from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from core.file_converter.config import AppConfig
from core.file_converter.core import ConversionService
from core.file_converter.errors import QuotaExceeded
from core.file_converter.identity import Identity
from core.file_converter.models import AuditRecord, ConversionRequest, ConversionResult, ConversionStatus, ConvertedFile, Upload
from core.file_converter.store import MemoryAuditStore
from core.file_converter.transformers import Transformers

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


def success_record(ip: str) -> AuditRecord:
    return AuditRecord(
        conversion_type="docx-to-pdf",
        from_format="docx",
        to_format="pdf",
        file_name="a.docx",
        file_size=10,
        status=ConversionStatus.SUCCESS,
        ip_address=ip,
        created_at=NOW.replace(hour=9),
    )


def test_quota_denial_skips_transform_and_audit() -> None:
    calls: list[bytes] = []

    def word_to_pdf(data: bytes) -> bytes:
        calls.append(data)
        return b"%PDF-"

    store = MemoryAuditStore(success_record("192.0.2.1") for _ in range(5))
    service = ConversionService(AppConfig(), store, transformers=Transformers(word_to_pdf=word_to_pdf), clock=fixed_clock)
    request = ConversionRequest(
        source="docx",
        target="pdf",
        file=Upload("a.docx", b"docx"),
        identity=Identity(ip_address="192.0.2.1"),
    )

    result = asyncio.run(service.convert(request))

    assert isinstance(result.error, QuotaExceeded)
    assert result.error.status_code == 429
    assert result.error.message == (
        "Daily conversion limit reached (5 files/day). Upgrade to Premium for unlimited conversions."
    )
    assert calls == []
    assert len(store.records()) == 5


def test_allowed_request_is_dispatched_and_audited() -> None:
    store = MemoryAuditStore(success_record("192.0.2.1") for _ in range(4))
    service = ConversionService(
        AppConfig(), store, transformers=Transformers(word_to_pdf=lambda data: b"%PDF-"), clock=fixed_clock
    )
    request = ConversionRequest(
        source="docx",
        target="pdf",
        file=Upload("a.docx", b"docx"),
        identity=Identity(ip_address="192.0.2.1"),
    )

    result = asyncio.run(service.convert(request))

    assert result.ok
    assert len(store.records()) == 5


def test_result_requires_exactly_one_outcome() -> None:
    with pytest.raises(ValueError):
        ConversionResult()
    with pytest.raises(ValueError):
        ConversionResult(file=ConvertedFile(b"x", "application/pdf", "x.pdf"), error=QuotaExceeded(5))


def test_unwrap_raises_the_carried_error() -> None:
    with pytest.raises(QuotaExceeded):
        ConversionResult(error=QuotaExceeded(5)).unwrap()
