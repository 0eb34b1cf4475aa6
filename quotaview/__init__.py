"""QuotaView - model quotas from the local Antigravity language server."""

from .models import MonitorConfig, QuotaRecord, RefreshState, ServiceEndpoint, ServiceHandle
from .services import DiscoveryError, UserStatusClient, create_process_discovery
from .viewmodels import QuotaViewModel

__version__ = "0.1.0"

__all__ = [
    "MonitorConfig",
    "QuotaRecord",
    "RefreshState",
    "ServiceEndpoint",
    "ServiceHandle",
    "DiscoveryError",
    "UserStatusClient",
    "create_process_discovery",
    "QuotaViewModel",
]
