"""ViewModels for QuotaView."""

from .quota_viewmodel import QuotaViewModel

__all__ = [
    "QuotaViewModel",
]
