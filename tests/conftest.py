# tests/conftest.py
import os
import tempfile

import pytest
from freezegun import freeze_time

from modules.headhunter.lib import config as hh_config
from modules.headhunter.lib.browser import RenderedPage, Renderer, RenderError
from modules.headhunter.lib.dedupe import DedupeCache, JsonCacheStore
from modules.headhunter.lib.enrichment.search import SearchResult, WebSearch
from modules.headhunter.lib.models import JobPosting


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (network calls or external services).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that perform live network calls or hit external services (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Write logs to a throwaway dir so real logs stay clean (per test)
    tmp_logs = tempfile.mkdtemp(prefix="hh-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")

    # Never pick up a developer's real key or cache
    for name in ("BRAVE_API_KEY", "BRAVE_SEARCH_API_KEY", "HEADHUNTER_CACHE_PATH", "HEADHUNTER_PLATFORMS", "HEADHUNTER_RENDERER"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def frozen_utc():
    with freeze_time("2025-01-01T00:00:00Z") as frozen:
        yield frozen


# ---------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------
class FakeRenderer(Renderer):
    """
    Serves canned HTML by URL. Unknown URLs (or URLs mapped to an Exception)
    raise RenderError, like a navigation timeout would.
    """

    def __init__(self, pages: dict | None = None):
        self.pages = dict(pages or {})
        self.calls: list[str] = []
        self.closed = False

    def render(self, url, *, wait_for=None, timeout_ms=None):
        self.calls.append(url)
        html = self.pages.get(url)
        if html is None:
            raise RenderError(f"no canned page for {url!r}")
        if isinstance(html, Exception):
            raise RenderError(repr(html)) from html
        page = RenderedPage(url=url, html=html)
        if wait_for and not page.find_all(wait_for):
            raise RenderError(f"Selector {wait_for!r} not present on {url!r}")
        return page

    def close(self):
        self.closed = True


class FakeSearch(WebSearch):
    """Maps a query to a list of result URLs and records every call."""

    def __init__(self, results: dict | None = None):
        self.results = dict(results or {})
        self.calls: list[str] = []

    def web_search(self, query, count=5):
        self.calls.append(query)
        value = self.results.get(query, [])
        if isinstance(value, Exception):
            raise value
        return [SearchResult(url=u) for u in value][:count]


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def fake_search():
    return FakeSearch()


# ---------------------------------------------------------------------
# Settings / cache / postings
# ---------------------------------------------------------------------
@pytest.fixture
def cache_path(tmp_path):
    return str(tmp_path / "state" / "seen_jobs.json")


@pytest.fixture
def fresh_settings(cache_path):
    """A brand-new Settings per test: stub platform only, no delays, temp cache."""
    return hh_config.Settings.from_env_and_kwargs({
        "keyword": "AI 工程師",
        "platforms": ["stub"],
        "cache_path": cache_path,
        "platform_delay_seconds": 0,
        "company_delay_seconds": 0,
    })


@pytest.fixture
def fresh_cache(cache_path):
    return DedupeCache(JsonCacheStore(cache_path))


@pytest.fixture
def make_posting():
    def _make(title="ML Engineer", company="Acme", link="", platform="104", **kw):
        return JobPosting(source_platform=platform, company=company, title=title, link=link, platform=platform, **kw)

    return _make
