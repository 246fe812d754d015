"""CLI entry point.

This script launches a crawl on the job board backend and follows its progress
bucket by bucket until the session finishes. It can also list past sessions,
show one session's status, or print the backend's persistence report.

Examples:
    python run_crawl.py --buckets fresher,cloud,faang
    python run_crawl.py --buckets all --global
    python run_crawl.py --history 10
    python run_crawl.py --status 3f1c...
    python run_crawl.py --verify

Connection settings come from CRAWL_* environment variables or `.env`
(see crawl_engine/config.py); --base-url and --token override them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from crawl_engine.backends.admin_api import AdminApiBackend
from crawl_engine.buckets import SCRAPE_BUCKETS, bucket_label, parse_bucket_selection
from crawl_engine.config import CrawlSettings, get_settings
from crawl_engine.errors import CrawlEngineError, LaunchError
from crawl_engine.history import SessionHistory
from crawl_engine.orchestrator import CrawlOrchestrator, OrchestratorState
from crawl_engine.utils import format_duration


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Launch and track job-board crawl sessions.")
    p.add_argument(
        "--buckets",
        type=str,
        default=",".join(SCRAPE_BUCKETS),
        help="Comma-separated buckets; 'all', 'categories', 'companies' or a company group also work.",
    )
    p.add_argument("--global", dest="global_jobs", action="store_true", help="Search global jobs (no Indian filter).")
    p.add_argument("--country", type=str, default=None, help="Country sent with the launch.")
    p.add_argument("--location", type=str, default=None, help="Location sent with the launch.")
    p.add_argument("--history", type=int, nargs="?", const=20, default=None, help="List the last N sessions and exit.")
    p.add_argument("--status", type=str, default=None, help="Show the backend status of one session and exit.")
    p.add_argument("--verify", action="store_true", help="Print the backend's persistence report and exit.")
    p.add_argument("--base-url", type=str, default=None, help="Admin API base URL.")
    p.add_argument("--token", type=str, default=None, help="Bearer token for the admin API.")
    return p.parse_args()


def print_progress(state: OrchestratorState) -> None:
    stats = state.stats
    print(
        f"[{state.session.status if state.session else 'pending'}] "
        f"found={stats.total_jobs_found} indian={stats.indian_jobs_found} added={stats.total_jobs_added} "
        f"buckets={stats.completed_buckets}/{len(state.bucket_progress)} failed={stats.failed_buckets}"
    )
    for bp in state.bucket_progress:
        print(f"    {bucket_label(bp.bucket):<16} {bp.status:<12} {bp.progress:>5.0f}%")


async def show_history(backend: AdminApiBackend, limit: int) -> int:
    sessions = await SessionHistory(backend).list(limit=limit)
    if not sessions:
        print("No scraping sessions found.")
        return 0
    for s in sessions:
        started = s.started_at.isoformat(timespec="seconds") if s.started_at else "-"
        print(
            f"{s.session_id}  {s.status.upper():<11} started={started} "
            f"buckets={len(s.buckets_completed)}/{len(s.buckets_requested)} failed={len(s.buckets_failed)} "
            f"found={s.total_jobs_found} new={s.new_jobs_added} updated={s.jobs_updated} "
            f"duration={format_duration(s.duration_ms)}"
        )
    return 0


async def show_status(backend: AdminApiBackend, session_id: str) -> int:
    status = await backend.fetch_status(session_id)
    print(
        f"{status.session_id}: {status.status} {status.progress:.0f}% "
        f"({len(status.buckets_completed)}/{len(status.buckets_requested)} completed, "
        f"{len(status.buckets_failed)} failed)"
    )
    return 0


async def show_verification(backend: AdminApiBackend) -> int:
    report = await backend.verify_data()
    latest = report.scraping_sessions.latest
    print(f"Sessions: {report.scraping_sessions.total}  Jobs: {report.jobs.total} "
          f"(+{report.jobs.added_in_last_5_minutes} in the last 5 minutes)")
    if latest is not None:
        print(
            f"Latest: {latest.session_id} {latest.status} new={latest.new_jobs_added} "
            f"updated={latest.jobs_updated} duration={format_duration(latest.duration_ms)}"
        )
    if report.proof_of_persistence.message:
        print(report.proof_of_persistence.message)
    return 0


async def run(args: argparse.Namespace, settings: CrawlSettings) -> int:
    backend = AdminApiBackend(
        base_url=settings.api_base_url,
        token_provider=lambda: settings.api_token,
        timeout_s=settings.request_timeout_s,
    )

    if args.history is not None:
        return await show_history(backend, args.history)
    if args.status:
        return await show_status(backend, args.status)
    if args.verify:
        return await show_verification(backend)

    filters = settings.default_filters()
    if args.global_jobs:
        filters.filter_indian_jobs = False
    if args.country:
        filters.country = args.country
    if args.location:
        filters.location = args.location

    # A one-shot run has nothing to refresh once the session is over.
    settings = settings.model_copy(update={"passive_refresh_s": 0})
    async with CrawlOrchestrator(backend, settings, on_update=print_progress) as orch:
        buckets = parse_bucket_selection(args.buckets)
        session_id = await orch.start(buckets, filters)
        print(f"Scraping started for: {', '.join(buckets)} (session {session_id})")
        summary = await orch.wait_for_completion()

    if summary is None:
        return 1
    print(summary.message())
    return 0 if summary.succeeded else 1


def main() -> None:
    args = parse_args()
    overrides = {}
    if args.base_url:
        overrides["api_base_url"] = args.base_url
    if args.token:
        overrides["api_token"] = args.token
    settings = get_settings().model_copy(update=overrides)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        code = asyncio.run(run(args, settings))
    except LaunchError as exc:
        print(str(exc), file=sys.stderr)
        code = 1
    except CrawlEngineError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
