"""FastAPI dependency providers for application services."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from core.file_converter.config import AppConfig
from core.file_converter.core import ConversionService
from core.file_converter.identity import Identity, SessionLookup
from core.file_converter.store import AuditStore

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(status_code=503, detail="CONFIG_UNAVAILABLE")
    return config


def get_service(request: Request) -> ConversionService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="SERVICE_UNAVAILABLE")
    return service


def get_store(request: Request) -> AuditStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="STORE_UNAVAILABLE")
    return store


def get_sessions(request: Request) -> SessionLookup:
    sessions = getattr(request.app.state, "sessions", None)
    if sessions is None:
        raise HTTPException(status_code=503, detail="SESSIONS_UNAVAILABLE")
    return sessions


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN


async def get_identity(request: Request) -> Identity:
    """Resolve the caller; a failing session backend degrades to an anonymous free caller."""

    sessions = get_sessions(request)
    try:
        session = await sessions.lookup(request)
    except Exception as exc:
        logger.error("Session lookup failed, treating caller as anonymous: %s", exc)
        session = None
    return Identity.from_session(
        session,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent") or UNKNOWN,
    )


__all__ = ["client_ip", "get_config", "get_identity", "get_service", "get_sessions", "get_store"]
