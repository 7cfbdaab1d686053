from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from core.file_converter.errors import AuditWriteError
from core.file_converter.models import AuditRecord, ConversionStatus
from core.file_converter.recorder import UsageRecorder
from core.file_converter.store import JsonlAuditStore, MemoryAuditStore

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def make_record(status: ConversionStatus = ConversionStatus.SUCCESS, **overrides) -> AuditRecord:  # type: ignore[no-untyped-def]
    fields = {
        "conversion_type": "pdf-to-docx",
        "from_format": "pdf",
        "to_format": "docx",
        "file_name": "notes.pdf",
        "file_size": 2048,
        "status": status,
        "ip_address": "198.51.100.20",
        "user_agent": "pytest",
        "created_at": NOW,
    }
    fields.update(overrides)
    return AuditRecord(**fields)


def test_jsonl_store_appends_and_reads(tmp_path: Path) -> None:
    store = JsonlAuditStore(tmp_path / "audit" / "conversions.jsonl")
    store.insert(make_record())
    store.insert(make_record(ConversionStatus.FAILED, error_message="Invalid PDF file format", duration_ms=12))

    records = store.records()

    assert [record.status for record in records] == [ConversionStatus.SUCCESS, ConversionStatus.FAILED]
    assert records[1].error_message == "Invalid PDF file format"
    assert records[1].duration_ms == 12
    assert records[0].created_at == NOW
    assert len(store.path.read_text(encoding="utf-8").splitlines()) == 2


def test_jsonl_store_skips_corrupt_lines(tmp_path: Path) -> None:
    path = tmp_path / "conversions.jsonl"
    store = JsonlAuditStore(path)
    store.insert(make_record())
    with path.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n\n")
    store.insert(make_record())

    assert len(store.records()) == 2


def test_missing_file_reads_empty(tmp_path: Path) -> None:
    assert JsonlAuditStore(tmp_path / "absent.jsonl").records() == []


def test_count_where_filters(tmp_path: Path) -> None:
    store = JsonlAuditStore(tmp_path / "conversions.jsonl")
    store.insert(make_record())
    store.insert(make_record(ConversionStatus.FAILED))
    store.insert(make_record(ip_address="198.51.100.99"))
    store.insert(make_record(user_id="acct-3"))
    store.insert(make_record(created_at=NOW - timedelta(days=1)))

    start = NOW.replace(hour=0)
    end = start + timedelta(days=1)
    by_ip = store.count_where("198.51.100.20", by_account=False, status=ConversionStatus.SUCCESS, start=start, end=end)
    by_account = store.count_where("acct-3", by_account=True, status=ConversionStatus.SUCCESS, start=start, end=end)

    assert by_ip == 2
    assert by_account == 1


def test_insert_failure_raises_audit_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonlAuditStore(blocker / "conversions.jsonl")

    with pytest.raises(AuditWriteError):
        store.insert(make_record())


def test_recorder_swallows_store_failures(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    recorder = UsageRecorder(JsonlAuditStore(blocker / "conversions.jsonl"))

    outcome = asyncio.run(recorder.record(make_record()))

    assert not outcome.ok
    assert outcome.error
    assert "Failed to track conversion type=pdf-to-docx file=notes.pdf" in caplog.text


def test_recorder_success() -> None:
    store = MemoryAuditStore()

    outcome = asyncio.run(UsageRecorder(store).record(make_record()))

    assert outcome.ok
    assert outcome.error is None
    assert len(store.records()) == 1


def test_audit_record_round_trip_keeps_timezone() -> None:
    original = make_record(user_id="acct-1", duration_ms=40)
    restored = AuditRecord.from_dict(original.to_dict())
    assert restored == original


def test_unreadable_lines_are_reported(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "conversions.jsonl"
    store = JsonlAuditStore(path)
    store.insert(make_record())
    with path.open("a", encoding="utf-8") as handle:
        handle.write("{truncated\n")

    assert len(store.records()) == 1
    assert f"Skipping unreadable audit record {path}:2" in caplog.text
