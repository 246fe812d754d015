"""Shared fixtures: an in-memory crawl backend and session record builders."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from crawl_engine.backends.base import CrawlBackend
from crawl_engine.config import CrawlSettings
from crawl_engine.models import CrawlSession, LaunchFilters


def make_session(
    session_id: str = "sess-1",
    status: str = "in-progress",
    requested: Optional[List[str]] = None,
    completed: Optional[List[str]] = None,
    failed: Optional[List[str]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a session record the way the backend serializes it."""
    record: Dict[str, Any] = {
        "sessionId": session_id,
        "status": status,
        "bucketsRequested": list(requested or []),
        "bucketsCompleted": list(completed or []),
        "bucketsFailed": list(failed or []),
        "totalApiCalls": 0,
        "totalJobsFound": 0,
        "newJobsAdded": 0,
        "jobsUpdated": 0,
        "indianJobsFound": 0,
        "indianJobsAdded": 0,
        "startedAt": "2024-05-01T10:00:00Z",
    }
    record.update(extra)
    return record


class FakeBackend(CrawlBackend):
    """Scriptable backend.

    `fetch_logs` pops from `script` while it has entries (an entry is either a
    list of records or an exception to raise), then serves `records`.
    """

    name = "fake"

    def __init__(self, session_ids: Optional[List[str]] = None) -> None:
        self.session_ids = list(session_ids or ["sess-1"])
        self.records: Dict[str, Dict[str, Any]] = {}
        self.script: List[Any] = []
        self.launches: List[tuple] = []
        self.launch_error: Optional[Exception] = None
        self.fetches = 0
        self.fetch_started = asyncio.Event()
        self._hold: Optional[asyncio.Event] = None

    def hold_next_fetch(self) -> asyncio.Event:
        """Make the next fetch block until the returned event is set."""
        self._hold = asyncio.Event()
        self.fetch_started.clear()
        return self._hold

    async def run_scrape(self, buckets: List[str], filters: LaunchFilters) -> str:
        self.launches.append((list(buckets), filters))
        if self.launch_error is not None:
            raise self.launch_error
        return self.session_ids.pop(0)

    async def fetch_logs(self, limit: Optional[int] = None, status: Optional[str] = None) -> List[CrawlSession]:
        self.fetches += 1
        if self._hold is not None:
            gate, self._hold = self._hold, None
            self.fetch_started.set()
            await gate.wait()
        if self.script:
            item = self.script.pop(0)
            if isinstance(item, Exception):
                raise item
            return [CrawlSession.model_validate(r) for r in item]
        return [CrawlSession.model_validate(r) for r in self.records.values()]


async def settle(rounds: int = 20) -> None:
    """Let pending tasks run for a few event-loop iterations."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings() -> CrawlSettings:
    """Fast polling, no idle refresh, no .env lookups."""
    return CrawlSettings(_env_file=None, poll_interval_s=0.001, passive_refresh_s=0)
