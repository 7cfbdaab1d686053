from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from ..constraint import DEFAULT_CONFIG_PATH, DEFAULT_STORE_PATH


@dataclass(slots=True)
class QuotaConfig:
    free_daily_limit: int = 5
    unlimited_plans: tuple[str, ...] = ("premium", "admin")


@dataclass(slots=True)
class TransformConfig:
    image_quality: int = 90
    raster_dpi: int = 150
    line_tolerance: float = 2.0


@dataclass(slots=True)
class RuntimeConfig:
    store_path: Path = DEFAULT_STORE_PATH
    max_file_size_mb: int = 10
    log_level: str = "INFO"


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    quota: QuotaConfig = field(default_factory=QuotaConfig)
    transform: TransformConfig = field(default_factory=TransformConfig)
    api: APIConfig = field(default_factory=APIConfig)

    @property
    def max_file_size_bytes(self) -> int:
        return self.runtime.max_file_size_mb * 1024 * 1024


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else None


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        store_path=Path(str(data.get("store_path", DEFAULT_STORE_PATH))),
        max_file_size_mb=int(data.get("max_file_size_mb", 10)),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def _build_quota(data: Mapping[str, object] | None) -> QuotaConfig:
    if not data:
        return QuotaConfig()
    return QuotaConfig(
        free_daily_limit=int(data.get("free_daily_limit", 5)),
        unlimited_plans=_tuple_of_strings(data.get("unlimited_plans"), QuotaConfig().unlimited_plans),
    )


def _build_transform(data: Mapping[str, object] | None) -> TransformConfig:
    if not data:
        return TransformConfig()
    return TransformConfig(
        image_quality=int(data.get("image_quality", 90)),
        raster_dpi=int(data.get("raster_dpi", 150)),
        line_tolerance=float(data.get("line_tolerance", 2.0)),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if not value:
        return tuple(default)
    if isinstance(value, str):
        return (value.lower(),)
    if isinstance(value, Iterable):
        return tuple(str(item).lower() for item in value)
    raise TypeError(f"Unsupported plan list: {value!r}")


def load_config(path: Path | None = None) -> AppConfig:
    path = path or DEFAULT_CONFIG_PATH
    raw = _read_toml(path)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        quota=_build_quota(_section(raw, "quota")),
        transform=_build_transform(_section(raw, "transform")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "store_path": str(config.runtime.store_path),
            "max_file_size_mb": config.runtime.max_file_size_mb,
            "log_level": config.runtime.log_level,
        },
        "quota": {
            "free_daily_limit": config.quota.free_daily_limit,
            "unlimited_plans": list(config.quota.unlimited_plans),
        },
        "transform": {
            "image_quality": config.transform.image_quality,
            "raster_dpi": config.transform.raster_dpi,
            "line_tolerance": config.transform.line_tolerance,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)


__all__ = [
    "APIConfig",
    "AppConfig",
    "QuotaConfig",
    "RuntimeConfig",
    "TransformConfig",
    "dump_config",
    "load_config",
]
