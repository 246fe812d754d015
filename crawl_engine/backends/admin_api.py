"""Admin REST API backend.

Talks to the job board's admin API, which launches crawls and records one
session document per run:

    POST /scrape/run            -> {"sessionId": ...}
    GET  /scrape/logs           -> [session, ...] or {"logs": [...], "total": ...}
    GET  /scrape/status/{id}    -> single-session status
    GET  /verify-data           -> advisory persistence report

Every request is bounded by a timeout and carries a bearer token when one is
available. A missing token is not an error; the request goes out unauthenticated.
Launches are never retried here: a rejected launch must be re-issued by the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..errors import LaunchRejected, PollFetchFailed, SessionNotFound
from ..models import CrawlSession, LaunchFilters, SessionStatus, VerificationReport
from .base import CrawlBackend

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class AdminApiBackend(CrawlBackend):
    """Launch crawls and read session records over HTTP."""

    name = "admin-api"
    base_url = "http://localhost:5000/api/admin"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout_s: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if base_url:
            self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = timeout_s
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document, mapping every failure to PollFetchFailed."""
        try:
            async with self._client() as client:
                resp = await client.get(path, params=params)
                resp.raise_for_status()
                return resp.json()
        except httpx.TimeoutException as exc:
            raise PollFetchFailed(f"GET {path} timed out after {self._timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise PollFetchFailed(f"GET {path} returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise PollFetchFailed(f"GET {path} failed: {exc}") from exc
        except ValueError as exc:
            raise PollFetchFailed(f"GET {path} returned invalid JSON") from exc

    async def run_scrape(self, buckets: List[str], filters: LaunchFilters) -> str:
        payload = filters.to_payload(buckets)
        try:
            async with self._client() as client:
                resp = await client.post("/scrape/run", json=payload)
        except httpx.HTTPError as exc:
            raise LaunchRejected(str(exc) or exc.__class__.__name__) from exc

        if resp.is_error:
            raise LaunchRejected(resp.text, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise LaunchRejected(resp.text, status_code=resp.status_code) from exc

        session_id = data.get("sessionId") if isinstance(data, dict) else None
        if not session_id:
            raise LaunchRejected(f"response carried no sessionId: {resp.text}", status_code=resp.status_code)

        logger.info("Backend accepted crawl %s for %d buckets", session_id, len(buckets))
        return str(session_id)

    async def fetch_logs(self, limit: Optional[int] = None, status: Optional[str] = None) -> List[CrawlSession]:
        params: Dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if status:
            params["status"] = status

        data = await self._get_json("/scrape/logs", params=params or None)
        # Older backends return a bare list; newer ones wrap it with paging info.
        if isinstance(data, dict):
            data = data.get("logs") or []
        if not isinstance(data, list):
            raise PollFetchFailed(f"GET /scrape/logs returned {type(data).__name__}, expected a list")

        sessions: List[CrawlSession] = []
        for index, record in enumerate(data):
            try:
                sessions.append(CrawlSession.model_validate(record))
            except ValidationError as exc:
                # One bad document must not hide the rest of the history.
                logger.warning("Skipping malformed session record %d: %d errors", index, exc.error_count())
        return sessions

    async def fetch_status(self, session_id: str) -> SessionStatus:
        path = f"/scrape/status/{session_id}"
        try:
            data = await self._get_json(path)
        except PollFetchFailed as exc:
            cause = exc.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                raise SessionNotFound(session_id) from cause
            raise
        try:
            return SessionStatus.model_validate(data)
        except ValidationError as exc:
            raise PollFetchFailed(f"malformed status for {session_id}") from exc

    async def verify_data(self) -> VerificationReport:
        data = await self._get_json("/verify-data")
        try:
            return VerificationReport.model_validate(data)
        except ValidationError as exc:
            raise PollFetchFailed("malformed verification report") from exc
