"""Services layer for QuotaView."""

from .process_discovery import (
    BaseProcessDiscovery,
    DiscoveryError,
    create_process_discovery,
)
from .user_status_client import UserStatusClient

__all__ = [
    "BaseProcessDiscovery",
    "DiscoveryError",
    "create_process_discovery",
    "UserStatusClient",
]
