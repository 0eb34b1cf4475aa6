"""
Quota models.

DATA STRUCTURES:
- QuotaRecord: quota for a single model as reported by the language server
  (e.g., "Claude Sonnet 4.5", "Gemini 3 Pro (High)")
- RefreshState: the coordinator's cached view of the last refresh cycle

Both are frozen. A refresh never mutates previous records; it produces a new
tuple of QuotaRecord and a new RefreshState.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser


@dataclass(frozen=True)
class QuotaRecord:
    """
    Quota information for a specific model.

    Fields:
        model_label: Display label of the model
        remaining_fraction: Remaining share of the quota, 0.0 to 1.0.
            The server omits the field when it has nothing to report, in
            which case the model is treated as untouched (1.0).
        reset_timestamp: ISO-8601 timestamp of the next reset, if reported
    """
    model_label: str
    remaining_fraction: float = 1.0
    reset_timestamp: Optional[str] = None

    def __post_init__(self):
        clamped = min(1.0, max(0.0, float(self.remaining_fraction)))
        object.__setattr__(self, "remaining_fraction", clamped)

    @property
    def remaining_percent(self) -> int:
        """Remaining quota as a whole percentage."""
        return int(round(self.remaining_fraction * 100))

    @property
    def reset_at(self) -> Optional[datetime]:
        """Parsed reset timestamp, or None when absent or malformed."""
        if not self.reset_timestamp:
            return None
        try:
            return date_parser.isoparse(self.reset_timestamp)
        except (ValueError, TypeError, OverflowError):
            return None


@dataclass(frozen=True)
class RefreshState:
    """
    Cached result of the refresh cycle.

    Owned by QuotaViewModel, which replaces the whole object on every
    transition. Presentation code only ever reads it.

    Fields:
        last_records: Records from the last successful cycle
        last_error: Raw error text of the last failed cycle, None after success
        is_fetching: True while a refresh is in flight
        next_due_time: When the ticker will trigger the next refresh
        has_completed_once: True once any refresh cycle has finished
    """
    next_due_time: datetime
    last_records: tuple[QuotaRecord, ...] = field(default_factory=tuple)
    last_error: Optional[str] = None
    is_fetching: bool = False
    has_completed_once: bool = False

    def seconds_until_due(self, now: datetime) -> int:
        """Whole seconds left before the next scheduled refresh."""
        return max(0, int((self.next_due_time - now).total_seconds()))
