"""Append-only persistence for conversion audit records."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, Protocol

from .errors import AuditWriteError, StorageUnavailable
from .models import AuditRecord, ConversionStatus

logger = logging.getLogger(__name__)


class AuditStore(Protocol):
    def insert(self, record: AuditRecord) -> None:  # pragma: no cover - interface
        ...

    def count_where(
        self,
        identity_key: str,
        *,
        by_account: bool,
        status: ConversionStatus,
        start: datetime,
        end: datetime,
    ) -> int:  # pragma: no cover - interface
        ...

    def records(self) -> list[AuditRecord]:  # pragma: no cover - interface
        ...


def _matches(
    record: AuditRecord,
    identity_key: str,
    *,
    by_account: bool,
    status: ConversionStatus,
    start: datetime,
    end: datetime,
) -> bool:
    owner = record.user_id if by_account else record.ip_address
    return owner == identity_key and record.status is status and start <= record.created_at < end


def _count(
    records: Iterable[AuditRecord],
    identity_key: str,
    *,
    by_account: bool,
    status: ConversionStatus,
    start: datetime,
    end: datetime,
) -> int:
    return sum(
        1
        for record in records
        if _matches(record, identity_key, by_account=by_account, status=status, start=start, end=end)
    )


class MemoryAuditStore:
    def __init__(self, records: Iterable[AuditRecord] = ()) -> None:
        self._records: list[AuditRecord] = list(records)
        self._lock = threading.Lock()

    def insert(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def count_where(
        self,
        identity_key: str,
        *,
        by_account: bool,
        status: ConversionStatus,
        start: datetime,
        end: datetime,
    ) -> int:
        with self._lock:
            snapshot = list(self._records)
        return _count(snapshot, identity_key, by_account=by_account, status=status, start=start, end=end)

    def records(self) -> list[AuditRecord]:
        with self._lock:
            return list(self._records)


class JsonlAuditStore:
    """Stores one JSON document per line; writes are appends only."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def insert(self, record: AuditRecord) -> None:
        line = json.dumps(record.to_dict(), ensure_ascii=False)
        try:
            with self._lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
        except OSError as exc:
            raise AuditWriteError(f"Could not append to {self._path}: {exc}") from exc

    def count_where(
        self,
        identity_key: str,
        *,
        by_account: bool,
        status: ConversionStatus,
        start: datetime,
        end: datetime,
    ) -> int:
        return _count(self.records(), identity_key, by_account=by_account, status=status, start=start, end=end)

    def records(self) -> list[AuditRecord]:
        if not self._path.exists():
            return []
        try:
            with self._lock:
                lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise StorageUnavailable(f"Could not read {self._path}: {exc}") from exc
        records: list[AuditRecord] = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                records.append(AuditRecord.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable audit record %s:%s: %s", self._path, number, exc)
                continue
        return records


__all__ = ["AuditStore", "JsonlAuditStore", "MemoryAuditStore"]
