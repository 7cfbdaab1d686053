"""Usage summaries over the audit log, as shown on the admin dashboard."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable

from .models import AuditRecord, ConversionStatus

RECENT_WINDOW = timedelta(days=30)
RECENT_ACTIVITY_LIMIT = 10


@dataclass(slots=True)
class UsageSummary:
    total: int = 0
    recent: int = 0
    previous: int = 0
    change_percent: float = 0.0
    success_rate: float = 0.0
    successful: int = 0
    failed: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    recent_activity: list[AuditRecord] = field(default_factory=list)


def summarize_usage(records: Iterable[AuditRecord], now: datetime | None = None) -> UsageSummary:
    now = now or datetime.now(timezone.utc)
    items = sorted(records, key=lambda record: record.created_at, reverse=True)
    recent_start = now - RECENT_WINDOW
    previous_start = now - 2 * RECENT_WINDOW

    recent = sum(1 for record in items if record.created_at >= recent_start)
    previous = sum(1 for record in items if previous_start <= record.created_at < recent_start)
    successful = sum(1 for record in items if record.status is ConversionStatus.SUCCESS)
    total = len(items)

    if previous == 0:
        change = 100.0
    else:
        change = (recent - previous) / previous * 100

    return UsageSummary(
        total=total,
        recent=recent,
        previous=previous,
        change_percent=round(change, 1),
        success_rate=round(successful / total * 100, 1) if total else 0.0,
        successful=successful,
        failed=total - successful,
        by_type=dict(Counter(record.conversion_type for record in items)),
        recent_activity=items[:RECENT_ACTIVITY_LIMIT],
    )


__all__ = ["UsageSummary", "summarize_usage"]
