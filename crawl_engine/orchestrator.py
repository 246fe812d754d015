"""Crawl-session orchestrator.

Ties the pieces together for one caller:

1. `start()` launches a crawl over the selected buckets and begins tracking the
   returned session id.
2. The poller fetches the session history every `poll_interval_s` while a
   session is tracked (and every `passive_refresh_s` while idle, if enabled).
3. Each tick locates the tracked record, derives per-bucket progress and
   aggregate stats, and stops tracking once the record is terminal.

All state lives on the orchestrator instance (`OrchestratorState`); there are no
module-level singletons, so several orchestrators can run side by side.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from .backends.base import CrawlBackend
from .config import CrawlSettings
from .errors import EmptySelection, PollFetchFailed, SessionAlreadyActive, StaleTickDiscarded
from .history import SessionHistory
from .models import AggregateStats, BucketProgress, CrawlSession, LaunchFilters, TerminalSummary
from .poller import ProgressPoller
from .progress import derive, pending_progress, summarize
from .utils import uniq_preserve_order

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorState:
    """Everything the orchestrator knows about the session it is tracking."""

    selected_buckets: List[str] = field(default_factory=list)
    filters: Optional[LaunchFilters] = None
    session_id: Optional[str] = None
    launching: bool = False
    session: Optional[CrawlSession] = None
    bucket_progress: List[BucketProgress] = field(default_factory=list)
    stats: AggregateStats = field(default_factory=AggregateStats)
    summary: Optional[TerminalSummary] = None
    stale_ticks_discarded: int = 0
    fetch_failures: int = 0

    @property
    def tracking(self) -> bool:
        return self.session_id is not None


class CrawlOrchestrator:
    """Launch crawl sessions and track their progress.

    Usage:
        async with CrawlOrchestrator(backend, settings) as orch:
            await orch.start(["fresher", "cloud"])
            summary = await orch.wait_for_completion()
    """

    def __init__(
        self,
        backend: CrawlBackend,
        settings: Optional[CrawlSettings] = None,
        selected_buckets: Optional[Iterable[str]] = None,
        on_update: Optional[Callable[[OrchestratorState], None]] = None,
        on_complete: Optional[Callable[[TerminalSummary], None]] = None,
    ) -> None:
        self.settings = settings or CrawlSettings()
        self.backend = backend
        self.history = SessionHistory(backend)
        self.state = OrchestratorState(selected_buckets=list(selected_buckets or []))
        self._on_update = on_update
        self._on_complete = on_complete
        self._fetch_lock = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._poller = ProgressPoller(self._tick, self._next_interval)

    async def __aenter__(self) -> "CrawlOrchestrator":
        self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def polling(self) -> bool:
        return self._poller.running

    @property
    def poll_count(self) -> int:
        return self._poller.ticks

    def open(self) -> None:
        """Begin passive history refresh if it is enabled."""
        if self.settings.passive_refresh_enabled:
            self._poller.start()

    async def aclose(self) -> None:
        """Cancel every timer. Tracking state is cleared; no tick runs afterwards."""
        await self._poller.stop()
        self._clear_tracking()

    async def start(
        self,
        selected_buckets: Optional[Iterable[str]] = None,
        filters: Optional[LaunchFilters] = None,
    ) -> str:
        """Launch a crawl and start tracking it.

        Raises:
            EmptySelection: no bucket selected; nothing is sent.
            SessionAlreadyActive: a session is tracked or a launch is in flight.
            LaunchRejected: the backend refused the request; state stays idle.
        """
        if self.state.tracking or self.state.launching:
            raise SessionAlreadyActive(self.state.session_id)

        if selected_buckets is not None:
            self.state.selected_buckets = list(selected_buckets)
        buckets = uniq_preserve_order(self.state.selected_buckets)
        if not buckets:
            raise EmptySelection()
        self.state.selected_buckets = buckets

        filters = filters or self.settings.default_filters()
        self.state.launching = True
        try:
            # No idle tick may run between here and tracking the new session.
            await self._poller.stop()
            session_id = await self.backend.run_scrape(buckets, filters)
        except Exception:
            self.open()
            raise
        finally:
            self.state.launching = False

        self.state.session_id = session_id
        self.state.filters = filters
        self.state.session = None
        self.state.summary = None
        self.state.bucket_progress = pending_progress(buckets)
        self.state.stats = AggregateStats()
        self._idle.clear()
        logger.info("Tracking crawl session %s (%s)", session_id, ", ".join(buckets))

        self._poller.start()
        return session_id

    async def stop_tracking(self) -> None:
        """Abandon the tracked session without waiting for it to finish."""
        await self._poller.stop()
        if self.state.session_id:
            logger.info("Stopped tracking crawl session %s", self.state.session_id)
        self._clear_tracking()
        self.open()

    async def refresh(self) -> List[CrawlSession]:
        """Re-fetch history on demand, applying it to the tracked session.

        Fetch failures are logged and the last known history is returned.
        """
        try:
            await self._tick()
        except PollFetchFailed as exc:
            logger.warning("History refresh failed: %s", exc)
        return self.history.latest

    async def wait_for_completion(self, timeout: Optional[float] = None) -> Optional[TerminalSummary]:
        """Wait until no session is tracked and return the last terminal summary."""
        await asyncio.wait_for(self._idle.wait(), timeout)
        return self.state.summary

    def _next_interval(self) -> Optional[float]:
        if self.state.tracking:
            return self.settings.poll_interval_s
        if self.settings.passive_refresh_enabled:
            return self.settings.passive_refresh_s
        return None

    async def _tick(self) -> None:
        async with self._fetch_lock:
            fetched_for = self.state.session_id
            try:
                sessions = await self.history.list()
            except PollFetchFailed:
                self.state.fetch_failures += 1
                raise
        try:
            self._apply(fetched_for, sessions)
        except StaleTickDiscarded as exc:
            self.state.stale_ticks_discarded += 1
            logger.info("%s", exc)

    def _apply(self, fetched_for: Optional[str], sessions: List[CrawlSession]) -> None:
        if fetched_for is None:
            return
        if fetched_for != self.state.session_id:
            raise StaleTickDiscarded(fetched_for, self.state.session_id)

        record = next((s for s in sessions if s.session_id == fetched_for), None)
        if record is None:
            logger.debug("Session %s not in history yet", fetched_for)
            return

        # The caller may edit the selection between ticks; read it once.
        requested = list(self.state.selected_buckets)
        self.state.bucket_progress, self.state.stats = derive(record, requested)
        self.state.session = record
        logger.debug(
            "Session %s: %d/%d buckets completed, %d failed",
            fetched_for,
            self.state.stats.completed_buckets,
            len(record.buckets_requested),
            self.state.stats.failed_buckets,
        )

        if record.is_terminal:
            self._finish(record)
        self._notify(self._on_update, self.state)

    def _finish(self, record: CrawlSession) -> None:
        filter_indian = self.state.filters.filter_indian_jobs if self.state.filters else None
        summary = summarize(record, filter_indian_jobs=filter_indian)
        self.state.summary = summary
        self._clear_tracking()
        logger.info("Crawl session %s finished: %s", record.session_id, record.status)
        self._notify(self._on_complete, summary)

    def _notify(self, callback: Optional[Callable], payload: object) -> None:
        # Listener errors are logged; they never reach the poll loop.
        if callback is None:
            return
        try:
            callback(payload)
        except Exception:
            logger.exception("Crawl progress listener %r raised", callback)

    def _clear_tracking(self) -> None:
        self.state.session_id = None
        self._idle.set()
