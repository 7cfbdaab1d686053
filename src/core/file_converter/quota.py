"""Daily conversion quota for free-tier identities.

The window is the server's local calendar day, ``[local midnight, local
midnight + 24h)``, not a rolling 24 hour window. It therefore depends on the
server timezone and shifts by an hour on daylight-saving transitions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from .config import QuotaConfig
from .errors import QuotaExceeded
from .executors import run_sync
from .identity import Identity
from .models import ConversionStatus
from .store import AuditStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


def local_day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


@dataclass(frozen=True, slots=True)
class QuotaDecision:
    allowed: bool
    used: int | None = None
    limit: int | None = None
    reason: str = "within-limit"


class QuotaGuard:
    def __init__(self, store: AuditStore, config: QuotaConfig, *, clock: Clock = local_now) -> None:
        self._store = store
        self._config = config
        self._clock = clock

    def is_unlimited(self, identity: Identity) -> bool:
        return identity.plan.value in self._config.unlimited_plans

    async def evaluate(self, identity: Identity) -> QuotaDecision:
        """Return the quota decision for *identity* without raising."""

        if self.is_unlimited(identity):
            return QuotaDecision(allowed=True, reason="unlimited-plan")
        limit = self._config.free_daily_limit
        start, end = local_day_bounds(self._clock())
        try:
            used = await run_sync(
                self._store.count_where,
                identity.key,
                by_account=identity.is_authenticated,
                status=ConversionStatus.SUCCESS,
                start=start,
                end=end,
            )
        except Exception as exc:
            logger.warning("Quota count failed for %s, allowing conversion: %s", identity.key, exc)
            return QuotaDecision(allowed=True, limit=limit, reason="storage-unavailable")
        if used >= limit:
            return QuotaDecision(allowed=False, used=used, limit=limit, reason="daily-limit")
        return QuotaDecision(allowed=True, used=used, limit=limit)

    async def check(self, identity: Identity) -> QuotaDecision:
        decision = await self.evaluate(identity)
        if not decision.allowed:
            logger.info("Daily limit reached for %s (%s/%s)", identity.key, decision.used, decision.limit)
            raise QuotaExceeded(self._config.free_daily_limit)
        return decision


__all__ = ["QuotaDecision", "QuotaGuard", "local_day_bounds", "local_now"]
