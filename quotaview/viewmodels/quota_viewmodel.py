"""
QuotaViewModel - Refresh coordination and cached quota state.

WORKFLOW OVERVIEW:
==================
This is the single owner of RefreshState. Presentation code reads snapshots
and registers callbacks; only this class writes.

KEY WORKFLOWS:
1. Refresh (timed or manual):
   - Skips immediately if a refresh is already in flight (single-flight)
   - Locates the language server process; none running means empty records
   - Resolves the CSRF token and listening ports; no ports means empty records
   - Asks UserStatusClient to query the ports one by one
   - Stores the records, or the error text if discovery itself failed
     (previous records are kept in that case)
   - Reschedules the next refresh and notifies callbacks

2. Ticker:
   - Wakes once per tick interval
   - Schedules a refresh once the due time has passed
   - Notifies callbacks on every tick so countdowns stay current

All state changes happen on the event loop that runs refresh() and the
ticker. The single-flight check and the flag update have no await between
them, so overlapping triggers cannot both get through.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..models.config import MonitorConfig
from ..models.quota import QuotaRecord, RefreshState
from ..services.process_discovery import BaseProcessDiscovery, create_process_discovery
from ..services.user_status_client import UserStatusClient

logger = logging.getLogger(__name__)


@dataclass
class QuotaViewModel:
    """
    Coordinates discovery, querying and scheduling for the quota view.

    STATE MANAGEMENT:
    - _state: the current RefreshState, replaced wholesale on every change
    - get_snapshot() hands out that immutable object

    UI INTEGRATION:
    Presentation code registers callbacks via register_update_callback().
    They run after every refresh and on every ticker tick.
    """

    config: MonitorConfig = field(default_factory=MonitorConfig)
    discovery: Optional[BaseProcessDiscovery] = None
    client: Optional[UserStatusClient] = None
    clock: Callable[[], datetime] = datetime.now

    _update_callbacks: List[Callable[[], None]] = field(default_factory=list, init=False, repr=False)
    _ticker_task: Optional[asyncio.Task] = field(default=None, init=False, repr=False)
    _refresh_task: Optional[asyncio.Task] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        """Pick the platform strategy and set the first due time."""
        if self.discovery is None:
            self.discovery = create_process_discovery(config=self.config)
        if self.client is None:
            self.client = UserStatusClient(self.config)
        self._state = RefreshState(next_due_time=self._next_due_time())

    @property
    def refresh_interval(self) -> timedelta:
        return timedelta(seconds=self.config.refresh_interval_seconds)

    def _next_due_time(self) -> datetime:
        return self.clock() + self.refresh_interval

    # Callbacks

    def register_update_callback(self, callback: Callable[[], None]):
        """Register a callback to be called when the state may have changed."""
        if callback not in self._update_callbacks:
            self._update_callbacks.append(callback)

    def unregister_update_callback(self, callback: Callable[[], None]):
        """Unregister an update callback."""
        if callback in self._update_callbacks:
            self._update_callbacks.remove(callback)

    def _notify_updated(self):
        for callback in list(self._update_callbacks):
            try:
                callback()
            except Exception:
                logger.exception("Update callback %r failed", callback)

    # Snapshot

    def get_snapshot(self) -> RefreshState:
        """Current cached state. Never blocks, never fails."""
        return self._state

    def seconds_until_next_refresh(self) -> int:
        return self._state.seconds_until_due(self.clock())

    # Refresh

    async def refresh(self) -> bool:
        """Run one discovery and query pass.

        Returns False without doing anything when a refresh is already in
        flight, True once this call's pass has completed.
        """
        if self._state.is_fetching:
            logger.debug("Refresh already in flight, skipping")
            return False

        self._state = replace(self._state, is_fetching=True, last_error=None)
        records = self._state.last_records
        error: Optional[str] = None
        try:
            records = tuple(await self._fetch_quotas())
            logger.info("Quota refresh complete: %d model(s)", len(records))
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.warning("Quota refresh failed: %s", error)
        finally:
            self._state = replace(
                self._state,
                last_records=records,
                last_error=error,
                is_fetching=False,
                has_completed_once=True,
                next_due_time=self._next_due_time(),
            )
        self._notify_updated()
        return True

    async def manual_refresh(self) -> bool:
        """Refresh now, waiting for completion."""
        return await self.refresh()

    async def ensure_loaded(self) -> bool:
        """Run the first refresh if none has completed or started yet."""
        if self._state.has_completed_once or self._state.is_fetching:
            return False
        return await self.refresh()

    async def _fetch_quotas(self) -> List[QuotaRecord]:
        handle = await self.discovery.locate()
        if handle is None:
            logger.debug("Language server not running")
            return []

        endpoint = await self.discovery.resolve(handle)
        if not endpoint.has_ports:
            logger.debug("Language server PID %d has no listening ports yet", handle.process_id)
            return []

        records = await self.client.fetch_quotas(endpoint)
        if records is None:
            logger.debug("No candidate port returned quota data")
            return []
        return records

    # Ticker

    @property
    def is_running(self) -> bool:
        return self._ticker_task is not None and not self._ticker_task.done()

    def start(self):
        """Start the ticker on the running event loop."""
        if self.is_running:
            return
        self._ticker_task = asyncio.get_running_loop().create_task(self._tick_loop())

    async def stop(self):
        """Stop the ticker. An in-flight refresh is left to finish."""
        task = self._ticker_task
        self._ticker_task = None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _tick_loop(self):
        while True:
            await asyncio.sleep(self.config.tick_interval_seconds)
            self.tick()

    def tick(self):
        """One ticker step: trigger a due refresh, then notify."""
        state = self._state
        if self.clock() >= state.next_due_time and not state.is_fetching:
            self._refresh_task = asyncio.get_running_loop().create_task(self.refresh())
        self._notify_updated()
