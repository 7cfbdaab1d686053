from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from core.file_converter import __version__
from core.file_converter.config import AppConfig, load_config
from core.file_converter.core import ConversionService
from core.file_converter.identity import AnonymousSessions, SessionLookup
from core.file_converter.logs import configure_logging
from core.file_converter.store import AuditStore, JsonlAuditStore
from core.settings import Settings, get_settings

from .routers import convert, health, stats


def create_app(
    config_path: Path | None = None,
    *,
    store: AuditStore | None = None,
    sessions: SessionLookup | None = None,
) -> FastAPI:
    settings = get_settings()
    config = _prepare_config(settings, config_path)
    configure_logging(config.runtime.log_level)

    app = FastAPI(title="File Converter", version=__version__)
    app.state.config = config
    app.state.store = store if store is not None else JsonlAuditStore(config.runtime.store_path)
    app.state.sessions = sessions if sessions is not None else AnonymousSessions()
    app.state.service = ConversionService(config, app.state.store)

    app.include_router(health.router)
    app.include_router(convert.router)
    app.include_router(stats.router)
    return app


def _prepare_config(settings: Settings, config_path: Path | None) -> AppConfig:
    config = load_config(config_path or settings.config_path)
    if settings.store_path is not None:
        config.runtime.store_path = settings.store_path
    if "log_level" in settings.model_fields_set:
        config.runtime.log_level = settings.log_level.upper()
    return config


__all__ = ["create_app"]
