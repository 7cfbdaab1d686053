from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.file_converter.identity import PlanTier, Session
from core.file_converter.models import AuditRecord, ConversionStatus
from core.file_converter.store import MemoryAuditStore

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class HeaderSessions:
    """Reads the caller's account from test headers."""

    async def lookup(self, request: Any) -> Session | None:
        account = request.headers.get("x-test-account")
        if not account:
            return None
        return Session(account_id=account, plan=PlanTier.parse(request.headers.get("x-test-plan")))


class BrokenSessions:
    async def lookup(self, request: Any) -> Session | None:
        raise ConnectionError("auth backend unreachable")


@pytest.fixture
def store() -> MemoryAuditStore:
    return MemoryAuditStore()


@pytest.fixture
def client(tmp_path: Path, store: MemoryAuditStore) -> TestClient:
    app = create_app(tmp_path / "config.toml", store=store, sessions=HeaderSessions())
    return TestClient(app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0"}


def test_docx_to_pdf(client: TestClient, store: MemoryAuditStore, docx_bytes: bytes) -> None:
    response = client.post(
        "/api/convert",
        data={"from": "docx", "to": "pdf"},
        files={"file": ("Annual Report.docx", docx_bytes, DOCX_MIME)},
        headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1", "User-Agent": "pytest-agent"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="Annual-Report.pdf"'
    assert response.content.startswith(b"%PDF-")

    [record] = store.records()
    assert record.status is ConversionStatus.SUCCESS
    assert record.conversion_type == "docx-to-pdf"
    assert record.from_format == "docx"
    assert record.to_format == "pdf"
    assert record.ip_address == "203.0.113.5"
    assert record.user_agent == "pytest-agent"
    assert record.user_id is None


@pytest.mark.parametrize(("upload_name", "expected"), [("отчёт.docx", "file.pdf"), ("報告書.docx", "file.pdf")])
def test_non_ascii_upload_name_keeps_pdf_extension(
    client: TestClient, store: MemoryAuditStore, docx_bytes: bytes, upload_name: str, expected: str
) -> None:
    response = client.post(
        "/api/convert",
        data={"from": "docx", "to": "pdf"},
        files={"file": (upload_name, docx_bytes, DOCX_MIME)},
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"] == f'attachment; filename="{expected}"'
    assert len(store.records()) == 1


def test_pdf_to_docx(client: TestClient, pdf_bytes: bytes) -> None:
    response = client.post(
        "/api/convert",
        data={"from": "pdf", "to": "docx"},
        files={"file": ("notes.pdf", pdf_bytes, "application/pdf")},
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == DOCX_MIME
    assert response.content.startswith(b"PK")


def test_images_combined_into_pdf(client: TestClient, make_image: Callable[..., bytes]) -> None:
    response = client.post(
        "/api/convert",
        data={"from": "image", "to": "pdf"},
        files=[
            ("files", ("a.png", make_image((30, 30)), "image/png")),
            ("files", ("b.png", make_image((60, 20)), "image/png")),
        ],
    )
    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="combined.pdf"'


def test_corrupt_pdf_to_jpg_is_audited_as_failure(client: TestClient, store: MemoryAuditStore) -> None:
    response = client.post(
        "/api/convert",
        data={"from": "pdf", "to": "jpg"},
        files={"file": ("broken.pdf", b"this is not a pdf", "application/pdf")},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Invalid PDF file format"}
    [record] = store.records()
    assert record.status is ConversionStatus.FAILED
    assert record.error_message == "Invalid PDF file format"


def test_unsupported_pair(client: TestClient, store: MemoryAuditStore) -> None:
    response = client.post(
        "/api/convert",
        data={"from": "pdf", "to": "pptx"},
        files={"file": ("deck.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Conversion from pdf to pptx not supported"}
    assert len(store.records()) == 1


def test_legacy_doc_rejected(client: TestClient) -> None:
    legacy = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 256
    response = client.post(
        "/api/convert",
        data={"from": "doc", "to": "pdf"},
        files={"file": ("old.doc", legacy, "application/msword")},
    )
    assert response.status_code == 415
    assert "convert to .docx" in response.json()["error"]


def test_missing_fields(client: TestClient, store: MemoryAuditStore, docx_bytes: bytes) -> None:
    no_file = client.post("/api/convert", data={"from": "docx", "to": "pdf"})
    no_target = client.post(
        "/api/convert",
        data={"from": "docx"},
        files={"file": ("a.docx", docx_bytes, DOCX_MIME)},
    )

    for response in (no_file, no_target):
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}
    assert store.records() == []


def test_daily_quota(client: TestClient, store: MemoryAuditStore, docx_bytes: bytes) -> None:
    for _ in range(5):
        store.insert(
            AuditRecord(
                conversion_type="docx-to-pdf",
                from_format="docx",
                to_format="pdf",
                file_name="earlier.docx",
                file_size=1,
                status=ConversionStatus.SUCCESS,
                ip_address="198.51.100.77",
                created_at=datetime.now(timezone.utc),
            )
        )

    blocked = client.post(
        "/api/convert",
        data={"from": "docx", "to": "pdf"},
        files={"file": ("a.docx", docx_bytes, DOCX_MIME)},
        headers={"X-Real-IP": "198.51.100.77"},
    )
    assert blocked.status_code == 429
    assert blocked.json()["error"].startswith("Daily conversion limit reached (5 files/day)")
    assert len(store.records()) == 5

    premium = client.post(
        "/api/convert",
        data={"from": "docx", "to": "pdf"},
        files={"file": ("a.docx", docx_bytes, DOCX_MIME)},
        headers={"X-Real-IP": "198.51.100.77", "x-test-account": "acct-9", "x-test-plan": "premium"},
    )
    assert premium.status_code == 200
    assert store.records()[-1].user_id == "acct-9"


def test_session_failure_treated_as_anonymous(tmp_path: Path, docx_bytes: bytes) -> None:
    store = MemoryAuditStore()
    client = TestClient(create_app(tmp_path / "config.toml", store=store, sessions=BrokenSessions()))

    response = client.post(
        "/api/convert",
        data={"from": "docx", "to": "pdf"},
        files={"file": ("a.docx", docx_bytes, DOCX_MIME)},
    )

    assert response.status_code == 200
    assert store.records()[0].user_id is None


def test_dashboard_requires_admin(client: TestClient) -> None:
    assert client.get("/api/dashboard/stats").status_code == 401
    response = client.get("/api/dashboard/stats", headers={"x-test-account": "u1", "x-test-plan": "premium"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_dashboard_stats(client: TestClient, docx_bytes: bytes) -> None:
    client.post(
        "/api/convert",
        data={"from": "docx", "to": "pdf"},
        files={"file": ("a.docx", docx_bytes, DOCX_MIME)},
    )
    client.post(
        "/api/convert",
        data={"from": "pdf", "to": "jpg"},
        files={"file": ("bad.pdf", b"garbage", "application/pdf")},
    )

    response = client.get("/api/dashboard/stats", headers={"x-test-account": "root", "x-test-plan": "admin"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["stats"]["total_conversions"] == 2
    assert payload["stats"]["recent_conversions"] == 2
    assert payload["stats"]["success_rate"] == 50.0
    assert payload["conversions_by_type"] == {"docx-to-pdf": 1, "pdf-to-jpg": 1}
    assert payload["summary"] == {"successful": 1, "failed": 1, "total": 2}
    assert {item["type"] for item in payload["recent_activity"]} == {"docx-to-pdf", "pdf-to-jpg"}
