from __future__ import annotations

import logging

from .config import AppConfig
from .dispatcher import ConversionDispatcher
from .errors import ConversionError, QuotaExceeded
from .models import ConversionRequest, ConversionResult
from .quota import Clock, QuotaGuard, local_now
from .recorder import UsageRecorder
from .store import AuditStore
from .transformers import Transformers

logger = logging.getLogger(__name__)


class ConversionService:
    """Runs the request pipeline: quota check, dispatch, audit.

    A quota denial is returned as a failed result carrying
    :class:`QuotaExceeded`; it never reaches a transformer and is not audited.
    """

    def __init__(
        self,
        config: AppConfig,
        store: AuditStore,
        *,
        transformers: Transformers | None = None,
        clock: Clock = local_now,
    ) -> None:
        self._config = config
        self._store = store
        self.recorder = UsageRecorder(store)
        self.quota = QuotaGuard(store, config.quota, clock=clock)
        self.dispatcher = ConversionDispatcher(config, self.recorder, transformers=transformers)

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def store(self) -> AuditStore:
        return self._store

    async def convert(self, request: ConversionRequest) -> ConversionResult:
        try:
            await self.quota.check(request.identity)
        except QuotaExceeded as exc:
            return ConversionResult(error=exc)
        return await self.dispatcher.dispatch(request)


__all__ = ["ConversionError", "ConversionService"]
