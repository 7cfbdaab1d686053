from __future__ import annotations

import logging
from dataclasses import dataclass

from .executors import run_sync
from .models import AuditRecord
from .store import AuditStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordOutcome:
    ok: bool
    error: str | None = None


class UsageRecorder:
    """Writes one audit record per conversion attempt.

    ``record`` is awaited by the caller but can never raise: a lost audit
    record is acceptable, a lost conversion result is not. There is a single
    attempt and no retry queue.
    """

    def __init__(self, store: AuditStore) -> None:
        self._store = store

    async def record(self, entry: AuditRecord) -> RecordOutcome:
        try:
            await run_sync(self._store.insert, entry)
        except Exception as exc:
            logger.error(
                "Failed to track conversion type=%s file=%s status=%s: %s: %s",
                entry.conversion_type,
                entry.file_name,
                entry.status.value,
                type(exc).__name__,
                exc,
            )
            return RecordOutcome(ok=False, error=str(exc) or type(exc).__name__)
        logger.debug(
            "Tracked conversion type=%s file=%s status=%s",
            entry.conversion_type,
            entry.file_name,
            entry.status.value,
        )
        return RecordOutcome(ok=True)


__all__ = ["RecordOutcome", "UsageRecorder"]
