"""Error types raised by the crawl engine.

Launch failures are raised to the caller as `LaunchError` subclasses. Poll
failures are transient: backends raise `PollFetchFailed` and the poller logs
and retries on the next tick.
"""

from __future__ import annotations

from typing import Optional


class CrawlEngineError(Exception):
    """Base class for every error the engine raises."""


class LaunchError(CrawlEngineError):
    """A crawl session could not be started."""


class EmptySelection(LaunchError):
    def __init__(self) -> None:
        super().__init__("Please select at least one bucket to scrape")


class SessionAlreadyActive(LaunchError):
    def __init__(self, session_id: Optional[str]) -> None:
        self.session_id = session_id
        if session_id:
            msg = f"Session {session_id} is still being tracked"
        else:
            msg = "A launch is already in flight"
        super().__init__(msg)


class LaunchRejected(LaunchError):
    """The backend refused (or never answered) the start request."""

    def __init__(self, detail: str, status_code: Optional[int] = None) -> None:
        self.detail = detail
        self.status_code = status_code
        prefix = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(f"Failed to start scraping: {prefix}{detail}")


class PollFetchFailed(CrawlEngineError):
    """Fetching session records failed; retried on the next tick."""


class StaleTickDiscarded(CrawlEngineError):
    """A fetch finished after the session it was issued for stopped being tracked."""

    def __init__(self, fetched_for: Optional[str], tracking: Optional[str]) -> None:
        self.fetched_for = fetched_for
        self.tracking = tracking
        super().__init__(f"Discarding tick for session {fetched_for}; now tracking {tracking}")


class SessionNotFound(CrawlEngineError):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Scraping session not found: {session_id}")
