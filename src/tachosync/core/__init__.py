"""Core module - Shared configuration and types."""

from tachosync.core.config import (
    COMPANY_ID_EXAMPLE,
    IMPORT_API_PATH,
    ServerConfig,
    is_valid_company_id,
)
from tachosync.core.types import ScheduleTrigger, SyncStatus, TriggerReason

__all__ = [
    # Config
    "COMPANY_ID_EXAMPLE",
    "IMPORT_API_PATH",
    "ServerConfig",
    "is_valid_company_id",
    # Types
    "ScheduleTrigger",
    "SyncStatus",
    "TriggerReason",
]
