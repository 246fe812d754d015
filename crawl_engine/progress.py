"""Progress aggregation.

The backend only reports three bucket lists per session (requested, completed,
failed) plus session-wide counters. This module turns that coarse snapshot into
per-bucket progress for display and rolls the counters up. Everything here is a
pure function of its arguments, so it can be unit-tested without any I/O.

Percentages are an approximation: completed and failed buckets are resolved
(100), requested-but-unresolved buckets sit at 50, everything else is 0. When a
session record carries per-bucket tallies their `progress` replaces the 50
placeholder for buckets that are still running.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .models import AggregateStats, BucketProgress, CrawlSession, TerminalSummary


COMPLETED_PROGRESS = 100
FAILED_PROGRESS = 100
RUNNING_PROGRESS = 50
PENDING_PROGRESS = 0


def bucket_status(session: CrawlSession, bucket: str) -> str:
    """Classify one bucket; completed wins over failed, failed over requested."""
    if bucket in session.buckets_completed:
        return "completed"
    if bucket in session.buckets_failed:
        return "failed"
    if bucket in session.buckets_requested:
        return "in-progress"
    return "pending"


def _running_progress(session: CrawlSession, bucket: str) -> float:
    tally = session.bucket_progress.get(bucket)
    if tally is None or tally.progress is None:
        return RUNNING_PROGRESS
    # A running bucket never shows as finished until the lists say so.
    return max(0.0, min(float(tally.progress), 99.0))


def derive_bucket(session: CrawlSession, bucket: str) -> BucketProgress:
    status = bucket_status(session, bucket)
    if status == "completed":
        progress: float = COMPLETED_PROGRESS
    elif status == "failed":
        progress = FAILED_PROGRESS
    elif status == "in-progress":
        progress = _running_progress(session, bucket)
    else:
        progress = PENDING_PROGRESS

    tally = session.bucket_progress.get(bucket)
    return BucketProgress(
        bucket=bucket,
        status=status,
        progress=progress,
        found=tally.found if tally else 0,
        added=tally.added if tally else 0,
    )


def aggregate(session: CrawlSession) -> AggregateStats:
    """Roll session counters up, straight from the record."""
    return AggregateStats(
        total_jobs_found=session.total_jobs_found,
        total_jobs_added=session.new_jobs_added,
        indian_jobs_found=session.indian_jobs_found,
        indian_jobs_added=session.indian_jobs_added,
        completed_buckets=len(set(session.buckets_completed)),
        failed_buckets=len(set(session.buckets_failed)),
    )


def derive(session: CrawlSession, requested_buckets: Sequence[str]) -> Tuple[List[BucketProgress], AggregateStats]:
    """Derive per-bucket progress and aggregate stats for one session snapshot.

    Args:
        session: Latest record for the tracked session.
        requested_buckets: Buckets the caller is displaying, in display order.
            Buckets the session resolved but that are missing here are left out
            of the per-bucket list; they still count in the aggregate stats.

    Returns:
        (per-bucket progress in `requested_buckets` order, aggregate stats)
    """
    seen = set()
    buckets: List[BucketProgress] = []
    for bucket in requested_buckets:
        if bucket in seen:
            continue
        seen.add(bucket)
        buckets.append(derive_bucket(session, bucket))
    return buckets, aggregate(session)


def pending_progress(requested_buckets: Sequence[str]) -> List[BucketProgress]:
    """Initial progress list shown between launch and the first snapshot."""
    seen = set()
    out: List[BucketProgress] = []
    for bucket in requested_buckets:
        if bucket in seen:
            continue
        seen.add(bucket)
        out.append(BucketProgress(bucket=bucket))
    return out


def summarize(session: CrawlSession, filter_indian_jobs: Optional[bool] = None) -> TerminalSummary:
    """Build the summary reported when a tracked session reaches a terminal status.

    `filter_indian_jobs` falls back to the flag stored on the record when not given.
    """
    if filter_indian_jobs is None:
        filter_indian_jobs = bool(session.filter_indian_jobs)
    return TerminalSummary(
        session_id=session.session_id,
        status=session.status,
        total_jobs_found=session.total_jobs_found,
        new_jobs_added=session.new_jobs_added,
        jobs_updated=session.jobs_updated,
        indian_jobs_found=session.indian_jobs_found,
        indian_jobs_added=session.indian_jobs_added,
        completed_buckets=list(session.buckets_completed),
        failed_buckets=[b for b in session.buckets_failed if b not in session.buckets_completed],
        duration_ms=session.duration_ms,
        filter_indian_jobs=filter_indian_jobs,
    )
