"""Base class for crawler backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import CrawlSession, LaunchFilters, SessionStatus, VerificationReport


class CrawlBackend(ABC):
    """Abstract boundary to the service that runs crawls and stores sessions.

    Implementations raise `LaunchRejected` from `run_scrape` and
    `PollFetchFailed` from the read calls; no other exception may escape.

    `run_scrape` and `fetch_logs` are all the orchestrator needs. `fetch_status`
    and `verify_data` are optional capabilities used only by the CLI; a backend
    that lacks them inherits the default, which raises NotImplementedError.
    """

    name: str

    @abstractmethod
    async def run_scrape(self, buckets: List[str], filters: LaunchFilters) -> str:
        """Start a crawl over `buckets` and return the new session id."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_logs(self, limit: Optional[int] = None, status: Optional[str] = None) -> List[CrawlSession]:
        """Return the session history, in backend order."""
        raise NotImplementedError

    async def fetch_status(self, session_id: str) -> SessionStatus:
        """Return the backend's own status view of one session.

        Optional; the default raises NotImplementedError.
        """
        raise NotImplementedError

    async def verify_data(self) -> VerificationReport:
        """Return the advisory persistence report.

        Optional; the default raises NotImplementedError.
        """
        raise NotImplementedError
