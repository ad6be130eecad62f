# tests/test_engine.py
import json

from modules.headhunter.lib import config as hh_config
from modules.headhunter.lib import engine
from modules.headhunter.lib.enrichment.enricher import ContactEnricher
from modules.headhunter.lib.models import ScrapeResult
from modules.headhunter.lib.scrapers.base import BaseScraper
from modules.headhunter.lib.scrapers.stub import StubScraper
from modules.headhunter.lib.throttle import DelayPolicy, NoDelay

STARTUP = "https://www.startup.com.tw/"
STARTUP_HTML = "<html><body><footer>02-2345-6789 hr@startup.com.tw</footer></body></html>"


def _settings(cache_path, **kw):
    base = {
        "platforms": ["alpha", "beta"],
        "cache_path": cache_path,
        "platform_delay_seconds": 0,
        "company_delay_seconds": 0,
    }
    base.update(kw)
    return hh_config.Settings.from_env_and_kwargs(base)


def _canned(kind_name, items):
    """Adapter class that returns fixed raw items through the normal BaseScraper pipeline."""

    class Canned(StubScraper):
        kind = kind_name

        def fetch_raw(self, criteria):
            return [dict(i) for i in items]

    return Canned


ALPHA_ITEMS = [
    {"company": "新創科技", "title": "AI 工程師", "link": "https://alpha/1", "salary": "月薪 60K"},
    {"company": "完整公司", "title": "PM", "link": "https://alpha/2",
     "contact_person": "林小姐", "contact_phone": "02-8765-4321", "contact_email": "jobs@complete.tw"},
]
BETA_ITEMS = [
    {"company": "新創科技", "title": "資料科學家", "link": "https://beta/1"},
]


def _lookup(mapping):
    return lambda kind: mapping[kind]


# ----------------------------------------------------------------------
# Happy path
# ----------------------------------------------------------------------
def test_run_tags_dedupes_enriches_and_groups(cache_path, fresh_cache, fake_search, fake_renderer):
    fake_search.results["新創科技 官網"] = [STARTUP]
    fake_renderer.pages[STARTUP] = STARTUP_HTML
    settings = _settings(cache_path)
    agg = engine.Aggregator(
        settings,
        cache=fresh_cache,
        enricher=ContactEnricher(fake_search, fake_renderer, throttle=NoDelay()),
        throttle=NoDelay(),
        get_scraper=_lookup({"alpha": _canned("alpha", ALPHA_ITEMS), "beta": _canned("beta", BETA_ITEMS)}),
    )

    report = agg.run()

    assert report.ok
    assert list(report.by_platform) == ["alpha", "beta"]
    assert [p.title for p in report.by_platform["alpha"]] == ["AI 工程師", "PM"]
    assert [p.platform for p in report.postings] == ["alpha", "alpha", "beta"]
    assert report.found_by_platform == {"alpha": 2, "beta": 1}
    assert fake_search.calls == ["新創科技 官網"]
    assert [p.contact_email for p in report.emailable()] == ["hr@startup.com.tw", "jobs@complete.tw", "hr@startup.com.tw"]
    assert len(report.rows()) == 3

    on_disk = json.loads(open(cache_path, encoding="utf-8").read())
    assert on_disk["jobs"]["https://beta/1"]["platform"] == "beta"


def test_second_run_within_ttl_finds_nothing_new(cache_path, fake_search, fake_renderer):
    settings = _settings(cache_path, enrich_enabled=False)
    lookup = _lookup({"alpha": _canned("alpha", ALPHA_ITEMS), "beta": _canned("beta", BETA_ITEMS)})

    first = engine.run_once(settings, lookup, renderer=fake_renderer, throttle=NoDelay())
    second = engine.run_once(settings, lookup, renderer=fake_renderer, throttle=NoDelay())

    assert len(first.postings) == 3
    assert second.postings == []
    assert len(second.duplicates) == 3
    assert second.by_platform == {"alpha": [], "beta": []}


# ----------------------------------------------------------------------
# Partial failure
# ----------------------------------------------------------------------
def test_failing_platform_does_not_block_others(cache_path, fresh_cache):
    class Exploding(BaseScraper):
        kind = "alpha"

        def search_url(self, criteria):
            return ""

        def extract(self, page, criteria):
            return []

        def run(self, criteria):
            raise RuntimeError("adapter bug")

    settings = _settings(cache_path, enrich_enabled=False)
    agg = engine.Aggregator(
        settings,
        cache=fresh_cache,
        throttle=NoDelay(),
        get_scraper=_lookup({"alpha": Exploding, "beta": _canned("beta", BETA_ITEMS)}),
    )
    report = agg.run()

    assert report.ok
    assert report.by_platform["alpha"] == []
    assert [p.title for p in report.by_platform["beta"]] == ["資料科學家"]
    assert "RuntimeError" in report.errors["alpha"][0]


def test_unknown_platform_is_reported_not_raised(cache_path, fresh_cache):
    settings = _settings(cache_path, platforms=["nope", "stub"], enrich_enabled=False)
    report = engine.Aggregator(settings, cache=fresh_cache, throttle=NoDelay()).run()
    assert "nope" in report.errors
    assert report.by_platform == {"nope": [], "stub": []}


def test_adapter_errors_are_collected(cache_path, fresh_cache):
    settings = _settings(cache_path, platforms=["stub"], enrich_enabled=False)
    criteria = settings.criteria(stub_error="blocked by captcha")
    report = engine.Aggregator(settings, cache=fresh_cache, throttle=NoDelay()).run(criteria)
    assert report.postings == []
    assert report.errors == {"stub": ["stub: RuntimeError('blocked by captcha')"]}


# ----------------------------------------------------------------------
# Configuration-level failure
# ----------------------------------------------------------------------
def test_no_platforms_is_an_explicit_empty_result(cache_path, fresh_cache):
    settings = _settings(cache_path, platforms=[])
    report = engine.Aggregator(settings, cache=fresh_cache, throttle=NoDelay()).run()
    assert report.ok is False
    assert report.reason == "no_platforms"
    assert report.postings == []


# ----------------------------------------------------------------------
# Delays and cancellation
# ----------------------------------------------------------------------
def test_platform_delay_runs_between_adapters_only(cache_path, fresh_cache):
    slept = []
    throttle = DelayPolicy(platform_seconds=3.0, company_seconds=0, sleep=slept.append)
    settings = _settings(cache_path, platforms=["alpha", "beta", "gamma"], enrich_enabled=False)
    lookup = _lookup({k: _canned(k, []) for k in ("alpha", "beta", "gamma")})

    engine.Aggregator(settings, cache=fresh_cache, throttle=throttle, get_scraper=lookup).run()

    assert slept == [3.0, 3.0]


def test_cancel_between_platforms_returns_partial(cache_path, fresh_cache):
    holder = {}

    class CancelAfter(StubScraper):
        kind = "alpha"

        def fetch_raw(self, criteria):
            holder["agg"].cancel()
            return [dict(i) for i in ALPHA_ITEMS]

    settings = _settings(cache_path)
    agg = engine.Aggregator(
        settings,
        cache=fresh_cache,
        throttle=NoDelay(),
        get_scraper=_lookup({"alpha": CancelAfter, "beta": _canned("beta", BETA_ITEMS)}),
    )
    holder["agg"] = agg
    report = agg.run()

    assert report.cancelled
    assert list(report.by_platform) == ["alpha"]
    assert len(report.by_platform["alpha"]) == 2
    assert len(fresh_cache) == 2


# ----------------------------------------------------------------------
# skip_network / run_once wiring
# ----------------------------------------------------------------------
def test_skip_network_skips_network_adapters_but_not_stub(cache_path, fake_renderer):
    settings = _settings(cache_path, platforms=["104", "stub"], skip_network=True)
    criteria = settings.criteria(stub_items=[{"company": "Acme", "title": "Dry run"}])

    report = engine.run_once(settings, renderer=fake_renderer, throttle=NoDelay(), criteria=criteria)

    assert fake_renderer.calls == []
    assert report.by_platform["104"] == []
    assert [p.title for p in report.by_platform["stub"]] == ["Dry run"]


def test_run_once_closes_only_the_renderer_it_built(cache_path, fake_renderer, monkeypatch):
    built = []

    class Tracked(type(fake_renderer)):
        pass

    def fake_build(kind, *, timeout_ms, settle_ms):
        r = Tracked()
        built.append(r)
        return r

    monkeypatch.setattr(engine, "build_renderer", fake_build)
    settings = _settings(cache_path, platforms=["stub"], enrich_enabled=False)

    engine.run_once(settings, throttle=NoDelay())
    engine.run_once(settings, renderer=fake_renderer, throttle=NoDelay())

    assert built[0].closed is True
    assert fake_renderer.closed is False


def test_run_once_closes_the_search_client_it_built(cache_path, fake_renderer, monkeypatch):
    built = []

    class TrackedSearch:
        def __init__(self, api_key):
            self.api_key = api_key
            self.queries = []
            self.closed = False
            built.append(self)

        def web_search(self, query, count=5):
            self.queries.append(query)
            return []

        def close(self):
            self.closed = True

    monkeypatch.setattr(engine, "BraveSearchClient", TrackedSearch)
    settings = _settings(cache_path, platforms=["stub"], enrich_enabled=True, brave_api_key="k")
    criteria = settings.criteria(stub_items=[{"company": "Acme", "title": "Engineer"}])

    engine.run_once(settings, renderer=fake_renderer, throttle=NoDelay(), criteria=criteria)

    (client,) = built
    assert client.api_key == "k"
    assert client.queries == ["Acme 官網"]
    assert client.closed is True


def test_adapters_receive_settings_and_throttle_sleep(cache_path, fresh_cache):
    seen = {}

    class Recording(StubScraper):
        kind = "alpha"

        def run(self, criteria):
            seen["fetch_details"] = self.fetch_details
            seen["max_chars"] = self.description_max_chars
            seen["sleep"] = self._sleep
            return ScrapeResult(platform=self.kind)

    throttle = NoDelay()
    settings = _settings(cache_path, platforms=["alpha"], fetch_details=False, description_max_chars=120, enrich_enabled=False)
    engine.Aggregator(settings, cache=fresh_cache, throttle=throttle, get_scraper=_lookup({"alpha": Recording})).run()

    assert seen == {"fetch_details": False, "max_chars": 120, "sleep": throttle.sleep}
