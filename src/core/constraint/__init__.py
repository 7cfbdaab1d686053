from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.toml")
DEFAULT_STORE_PATH = Path("data/conversions.jsonl")
ENV_PREFIX = "FC_"

__all__ = ["DEFAULT_CONFIG_PATH", "DEFAULT_STORE_PATH", "ENV_PREFIX"]
