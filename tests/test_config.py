"""Tests for settings loading."""

from __future__ import annotations

from crawl_engine.config import CrawlSettings


def test_defaults():
    s = CrawlSettings(_env_file=None)

    assert s.poll_interval_s == 2.0
    assert s.passive_refresh_s == 15.0
    assert s.passive_refresh_enabled
    assert s.api_token is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CRAWL_API_BASE_URL", "https://jobs.example.com/api/admin")
    monkeypatch.setenv("CRAWL_PASSIVE_REFRESH_S", "0")
    monkeypatch.setenv("CRAWL_FILTER_INDIAN_JOBS", "false")

    s = CrawlSettings(_env_file=None)

    assert s.api_base_url == "https://jobs.example.com/api/admin"
    assert not s.passive_refresh_enabled
    assert s.default_filters().filter_indian_jobs is False


def test_default_filters():
    filters = CrawlSettings(_env_file=None, country="India", location="Bangalore", triggered_by="cli").default_filters()

    assert filters.location == "Bangalore"
    assert filters.triggered_by == "cli"
    assert filters.include_remote is None
