from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_identity, get_store
from api.schemas import ActivityItem, DashboardStats, StatusSummary, UsageStats
from core.file_converter.errors import StorageUnavailable
from core.file_converter.executors import run_sync
from core.file_converter.identity import Identity, PlanTier
from core.file_converter.reporting import summarize_usage
from core.file_converter.store import AuditStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    summary="Conversion usage statistics for administrators",
    response_model=DashboardStats,
)
async def dashboard_stats(
    identity: Identity = Depends(get_identity),
    store: AuditStore = Depends(get_store),
) -> DashboardStats | JSONResponse:
    if identity.plan is not PlanTier.ADMIN:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)
    try:
        records = await run_sync(store.records)
    except StorageUnavailable as exc:
        logger.error("Dashboard stats unavailable: %s", exc)
        return JSONResponse({"error": "Failed to fetch stats"}, status_code=500)

    summary = summarize_usage(records)
    return DashboardStats(
        stats=UsageStats(
            total_conversions=summary.total,
            recent_conversions=summary.recent,
            change_percent=summary.change_percent,
            success_rate=summary.success_rate,
        ),
        conversions_by_type=summary.by_type,
        recent_activity=[
            ActivityItem(
                type=record.conversion_type,
                from_format=record.from_format,
                to_format=record.to_format,
                status=record.status.value,
                file_name=record.file_name,
                created_at=record.created_at,
            )
            for record in summary.recent_activity
        ],
        summary=StatusSummary(successful=summary.successful, failed=summary.failed, total=summary.total),
    )


__all__ = ["router"]
