"""Data models for the crawl engine.

The backend owns the session records; we mirror their JSON shape here so the
rest of the engine works with typed objects. Attribute names are snake_case and
each field carries the camelCase alias used on the wire.

This file uses Pydantic v2.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .utils import format_duration


SessionStatusName = Literal["in-progress", "completed", "failed", "partial"]

BucketStatus = Literal["pending", "in-progress", "completed", "failed"]

BucketPhase = Literal["pending", "running", "done"]

# The backend writes `partial` as its final status when some buckets failed,
# so it is terminal alongside `completed` and `failed`.
TERMINAL_STATUSES = frozenset({"completed", "failed", "partial"})


def _normalize_status(value: Any) -> Any:
    # The backend creates sessions as `in_progress`.
    if isinstance(value, str):
        return value.strip().lower().replace("_", "-")
    return value


def _none_as_empty(value: Any) -> Any:
    return [] if value is None else value


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BucketTally(_WireModel):
    """Optional per-bucket counters some backend versions attach to a session."""

    status: Optional[str] = None
    found: int = 0
    added: int = 0
    progress: Optional[float] = None


class CrawlSession(_WireModel):
    """One invocation of the external crawler, as stored by the backend.

    Counters only grow while the session is in progress and are frozen once it
    reaches a terminal status. Bucket invariants (completed and failed are
    disjoint subsets of requested) are not enforced here: a malformed record
    must not stall polling, and the aggregator's precedence rule keeps derived
    progress consistent anyway.
    """

    session_id: str = Field(..., alias="sessionId")
    status: SessionStatusName = "in-progress"

    buckets_requested: List[str] = Field(default_factory=list, alias="bucketsRequested")
    buckets_completed: List[str] = Field(default_factory=list, alias="bucketsCompleted")
    buckets_failed: List[str] = Field(default_factory=list, alias="bucketsFailed")

    total_api_calls: int = Field(default=0, alias="totalApiCalls")
    total_jobs_found: int = Field(default=0, alias="totalJobsFound")
    new_jobs_added: int = Field(default=0, alias="newJobsAdded")
    jobs_updated: int = Field(default=0, alias="jobsUpdated")
    indian_jobs_found: int = Field(default=0, alias="indianJobsFound")
    indian_jobs_added: int = Field(default=0, alias="indianJobsAdded")

    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
    duration_ms: Optional[int] = Field(default=None, alias="durationMs")

    triggered_by: Optional[str] = Field(default=None, alias="triggeredBy")
    filter_indian_jobs: Optional[bool] = Field(default=None, alias="filterIndianJobs")
    country: Optional[str] = None
    location: Optional[str] = None
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    bucket_progress: Dict[str, BucketTally] = Field(default_factory=dict, alias="bucketProgress")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_status(value)

    @field_validator(
        "total_api_calls",
        "total_jobs_found",
        "new_jobs_added",
        "jobs_updated",
        "indian_jobs_found",
        "indian_jobs_added",
        mode="before",
    )
    @classmethod
    def empty_counter(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("buckets_requested", "buckets_completed", "buckets_failed", mode="before")
    @classmethod
    def empty_bucket_lists(cls, value: Any) -> Any:
        return _none_as_empty(value)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class BucketProgress(BaseModel):
    """Derived, per-bucket view of a tracked session. Never persisted."""

    bucket: str
    status: BucketStatus = "pending"
    progress: float = 0
    found: int = 0
    added: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def phase(self) -> BucketPhase:
        if self.status in ("completed", "failed"):
            return "done"
        if self.status == "in-progress":
            return "running"
        return "pending"


class AggregateStats(BaseModel):
    """Session-level counters rolled up for display while tracking."""

    total_jobs_found: int = 0
    total_jobs_added: int = 0
    indian_jobs_found: int = 0
    indian_jobs_added: int = 0
    completed_buckets: int = 0
    failed_buckets: int = 0


class TerminalSummary(BaseModel):
    """What the orchestrator reports once a tracked session stops."""

    session_id: str
    status: SessionStatusName
    total_jobs_found: int = 0
    new_jobs_added: int = 0
    jobs_updated: int = 0
    indian_jobs_found: int = 0
    indian_jobs_added: int = 0
    completed_buckets: List[str] = Field(default_factory=list)
    failed_buckets: List[str] = Field(default_factory=list)
    duration_ms: Optional[int] = None
    filter_indian_jobs: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

    def message(self) -> str:
        """Render a one-line human summary of the session outcome."""
        scope = "(Indian) " if self.filter_indian_jobs else ""
        took = f" in {format_duration(self.duration_ms)}" if self.duration_ms is not None else ""

        if self.status == "completed":
            return (
                f"Scraping completed{took}! Found {self.total_jobs_found} {scope}jobs - "
                f"{self.new_jobs_added} new added, {self.jobs_updated} updated"
            )
        if self.status == "partial":
            return (
                f"Scraping finished with failures{took}: "
                f"{len(self.completed_buckets)} buckets completed, "
                f"{len(self.failed_buckets)} failed ({', '.join(self.failed_buckets)}). "
                f"Found {self.total_jobs_found} {scope}jobs - "
                f"{self.new_jobs_added} new added, {self.jobs_updated} updated"
            )
        return "Scraping failed for some buckets"


class LaunchFilters(BaseModel):
    """Filter parameters sent along with a crawl launch."""

    model_config = ConfigDict(populate_by_name=True)

    filter_indian_jobs: bool = Field(default=True, alias="filterIndianJobs")
    country: str = "India"
    location: str = "India"
    include_remote: Optional[bool] = Field(default=None, alias="includeRemote")
    triggered_by: str = Field(default="admin", alias="triggeredBy")

    def to_payload(self, buckets: List[str]) -> Dict[str, Any]:
        """Build the `POST /scrape/run` body for the given bucket selection."""
        payload: Dict[str, Any] = {"buckets": list(buckets)}
        payload.update(self.model_dump(by_alias=True, exclude_none=True))
        return payload


class SessionStatus(_WireModel):
    """Single-session status as reported by `GET /scrape/status/{id}`."""

    session_id: str = Field(..., alias="sessionId")
    status: SessionStatusName = "in-progress"
    buckets_requested: List[str] = Field(default_factory=list, alias="bucketsRequested")
    buckets_completed: List[str] = Field(default_factory=list, alias="bucketsCompleted")
    buckets_failed: List[str] = Field(default_factory=list, alias="bucketsFailed")
    progress: float = 0

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_status(value)

    @field_validator("buckets_requested", "buckets_completed", "buckets_failed", mode="before")
    @classmethod
    def empty_bucket_lists(cls, value: Any) -> Any:
        return _none_as_empty(value)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class LatestSessionSnapshot(_WireModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    status: Optional[str] = None
    buckets_requested: int = Field(default=0, alias="bucketsRequested")
    buckets_completed: int = Field(default=0, alias="bucketsCompleted")
    new_jobs_added: Optional[int] = Field(default=None, alias="newJobsAdded")
    jobs_updated: Optional[int] = Field(default=None, alias="jobsUpdated")
    total_jobs_found: Optional[int] = Field(default=None, alias="totalJobsFound")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
    duration_ms: Optional[int] = Field(default=None, alias="durationMs")


class SessionsOverview(_WireModel):
    total: int = 0
    latest: Optional[LatestSessionSnapshot] = None


class JobsOverview(_WireModel):
    total: int = 0
    added_in_last_5_minutes: int = Field(default=0, alias="addedInLast5Minutes")


class VerificationInfo(_WireModel):
    timestamp: Optional[datetime] = None
    environment: Optional[str] = None
    database_note: Optional[str] = Field(default=None, alias="databaseNote")


class PersistenceProof(_WireModel):
    message: Optional[str] = None
    details: Optional[str] = None


class VerificationReport(_WireModel):
    """Advisory payload from `GET /verify-data`; not needed for orchestration."""

    verification: VerificationInfo = Field(default_factory=VerificationInfo)
    scraping_sessions: SessionsOverview = Field(default_factory=SessionsOverview, alias="scrapingSessions")
    jobs: JobsOverview = Field(default_factory=JobsOverview)
    proof_of_persistence: PersistenceProof = Field(default_factory=PersistenceProof, alias="proofOfPersistence")
