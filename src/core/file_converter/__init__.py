"""File format conversion with per-identity usage metering."""

from .config import AppConfig, load_config
from .core import ConversionService
from .dispatcher import ConversionDispatcher, TransformerKind, select_transformer
from .identity import Identity, PlanTier
from .models import AuditRecord, ConversionRequest, ConversionResult, Upload
from .quota import QuotaGuard
from .recorder import UsageRecorder
from .store import JsonlAuditStore, MemoryAuditStore

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "AppConfig",
    "AuditRecord",
    "ConversionDispatcher",
    "ConversionRequest",
    "ConversionResult",
    "ConversionService",
    "Identity",
    "JsonlAuditStore",
    "MemoryAuditStore",
    "PlanTier",
    "QuotaGuard",
    "TransformerKind",
    "Upload",
    "UsageRecorder",
    "load_config",
    "select_transformer",
]
