"""Data models for QuotaView."""

from .config import MonitorConfig, RequestMetadata
from .discovery import ServiceHandle, ServiceEndpoint
from .quota import QuotaRecord, RefreshState
from .user_status import UserStatusResponse, ClientModelConfig, QuotaInfo

__all__ = [
    "MonitorConfig",
    "RequestMetadata",
    "ServiceHandle",
    "ServiceEndpoint",
    "QuotaRecord",
    "RefreshState",
    "UserStatusResponse",
    "ClientModelConfig",
    "QuotaInfo",
]
