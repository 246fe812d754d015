"""Crawl engine package.

Launches multi-bucket crawl sessions on the job board backend and tracks their
progress from periodically polled session records:
- `buckets.py` is the static catalog of bucket names callers can select.
- `models.py` mirrors the backend's session schema and the derived views.
- `progress.py` turns a coarse session snapshot into per-bucket progress.
- `poller.py` and `orchestrator.py` own the launch/poll/terminate lifecycle.
- `backends/` contains the REST boundary to the backend.
"""
