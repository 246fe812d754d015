"""Session history view.

Lists past and running crawl sessions independently of whichever session the
orchestrator is tracking. Order is whatever the backend returns (newest first in
practice); nothing else in the engine depends on it.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .backends.base import CrawlBackend
from .models import CrawlSession

logger = logging.getLogger(__name__)


class SessionHistory:
    """Lazily fetched, cached list of crawl sessions."""

    def __init__(self, backend: CrawlBackend) -> None:
        self._backend = backend
        self._sessions: List[CrawlSession] = []

    @property
    def latest(self) -> List[CrawlSession]:
        """Sessions from the most recent successful fetch."""
        return list(self._sessions)

    async def list(self, limit: Optional[int] = None, status: Optional[str] = None) -> List[CrawlSession]:
        """Fetch the session history from the backend and cache it.

        Raises PollFetchFailed if the backend cannot be reached; the cached
        list is left untouched in that case.
        """
        sessions = await self._backend.fetch_logs(limit=limit, status=status)
        self._sessions = sessions
        logger.debug("Fetched %d crawl sessions", len(sessions))
        return list(sessions)

    def find(self, session_id: str) -> Optional[CrawlSession]:
        for session in self._sessions:
            if session.session_id == session_id:
                return session
        return None
