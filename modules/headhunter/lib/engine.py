"""
Aggregation Orchestrator.

One run, strictly in sequence:
  - each enabled platform adapter (politeness delay between platforms)
  - tag every posting with the platform it was requested from
  - dedupe cache filter over the union; survivors are marked seen
  - contact enrichment for survivors still missing contact fields
  - regroup per platform (source order kept) into a RunReport

Nothing raised by an adapter, the cache or the enricher stops the batch. The only
configuration-level failure (no platforms) comes back as RunReport(ok=False).
"""

from __future__ import annotations

import time
from collections.abc import Callable

from . import logging_bridge
from .browser import Renderer, build_renderer
from .config import Settings
from .dedupe import DedupeCache, JsonCacheStore
from .enrichment.enricher import ContactEnricher
from .enrichment.search import BraveSearchClient, WebSearch
from .models import JobPosting, RunReport, SearchCriteria
from .scrapers.base import BaseScraper
from .throttle import DelayPolicy


# =============================================================================
# DEFAULT SCRAPER LOOKUP (PRODUCTION)
# =============================================================================
def _default_get_scraper(kind: str) -> type[BaseScraper]:
    """Resolve adapter class from the registry unless a test injects its own lookup."""
    from .scrapers.registry import get as get_scraper_class

    return get_scraper_class(kind)


# =============================================================================
# ORCHESTRATOR
# =============================================================================
class Aggregator:
    def __init__(
        self,
        settings: Settings,
        *,
        cache: DedupeCache,
        enricher: ContactEnricher | None = None,
        throttle: DelayPolicy | None = None,
        renderer: Renderer | None = None,
        get_scraper: Callable[[str], type[BaseScraper]] | None = None,
    ):
        self.settings = settings
        self.cache = cache
        self.enricher = enricher
        self.throttle = throttle or DelayPolicy(settings.platform_delay_seconds, settings.company_delay_seconds)
        self.renderer = renderer
        self.get_scraper = get_scraper or _default_get_scraper
        self._cancelled = False

    def cancel(self) -> None:
        """Stop at the next platform or company boundary; the run returns what it has."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def run(self, criteria: SearchCriteria | None = None) -> RunReport:
        start_ns = time.perf_counter_ns()
        s = self.settings
        criteria = criteria or s.criteria()
        platforms = list(s.platforms)

        if not platforms:
            logging_bridge.error({
                "component": "headhunter.engine",
                "op": "no_platforms",
                "keyword": criteria.keyword,
            })
            return RunReport(ok=False, reason="no_platforms")

        logging_bridge.activity({
            "component": "headhunter.engine",
            "op": "start",
            "keyword": criteria.keyword,
            "location": criteria.location,
            "min_salary": criteria.min_salary,
            "max_results": criteria.max_results,
            "platforms": platforms,
            "skip_network": s.skip_network,
        })

        report = RunReport()

        # ---------------------------------------------------------------------
        # ADAPTERS (one at a time)
        # ---------------------------------------------------------------------
        collected: dict[str, list[JobPosting]] = {}
        for i, platform in enumerate(platforms):
            if self._cancelled:
                report.cancelled = True
                break
            if i:
                self.throttle.between_platforms()
            items = self._run_platform(platform, criteria, report)
            collected[platform] = items
            report.found_by_platform[platform] = len(items)

        # ---------------------------------------------------------------------
        # DEDUPLICATE (survivors are marked seen and persisted here)
        # ---------------------------------------------------------------------
        union = [p for items in collected.values() for p in items]
        unique, duplicates = self.cache.filter(union, mark_seen=True)
        report.duplicates = duplicates

        logging_bridge.activity({
            "component": "headhunter.engine",
            "op": "dedupe",
            "found": len(union),
            "unique": len(unique),
            "duplicates": len(duplicates),
        })

        # ---------------------------------------------------------------------
        # ENRICH
        # ---------------------------------------------------------------------
        if self._cancelled:
            report.cancelled = True
        elif self._should_enrich():
            t0 = time.perf_counter_ns()
            unique = self.enricher.enrich(unique, should_stop=lambda: self._cancelled)
            report.durations_us["_enrichment"] = int((time.perf_counter_ns() - t0) // 1000)
            report.cancelled = self._cancelled

        # ---------------------------------------------------------------------
        # REGROUP (platform order, then source order)
        # ---------------------------------------------------------------------
        report.by_platform = {platform: [] for platform in collected}
        for p in unique:
            report.by_platform.setdefault(p.platform, []).append(p)

        total_us = int((time.perf_counter_ns() - start_ns) // 1000)
        report.durations_us["_total_us"] = total_us

        logging_bridge.activity({
            "component": "headhunter.engine",
            "op": "summary",
            "found_by_platform": report.found_by_platform,
            "new_by_platform": {k: len(v) for k, v in report.by_platform.items()},
            "duplicates": len(duplicates),
            "with_email": len(report.emailable()),
            "errors": {k: len(v) for k, v in report.errors.items()},
            "cancelled": report.cancelled,
            "durations_us": report.durations_us,
        })
        return report

    # ---- internals ----------------------------------------------------------

    def _should_enrich(self) -> bool:
        return bool(self.settings.enrich_enabled and self.enricher is not None and not self.settings.skip_network)

    def _run_platform(self, platform: str, criteria: SearchCriteria, report: RunReport) -> list[JobPosting]:
        s = self.settings
        t0 = time.perf_counter_ns()
        try:
            scraper_cls = self.get_scraper(platform)
            if s.skip_network and scraper_cls.uses_network:
                logging_bridge.activity({
                    "component": "headhunter.engine",
                    "op": "skipped_platform",
                    "platform": platform,
                    "reason": "skip_network",
                })
                return []
            scraper = scraper_cls(
                self.renderer,
                description_max_chars=s.description_max_chars,
                fetch_details=s.fetch_details,
                sleep=self.throttle.sleep,
            )
            result = scraper.run(criteria)
        except Exception as e:
            report.errors.setdefault(platform, []).append(repr(e))
            report.durations_us[platform] = int((time.perf_counter_ns() - t0) // 1000)
            logging_bridge.error({
                "component": "headhunter.engine",
                "op": "platform_failed",
                "platform": platform,
                "error": repr(e),
            })
            return []

        if result.errors:
            report.errors.setdefault(platform, []).extend(result.errors)
        items = [p.tagged(platform) for p in result.items]
        report.durations_us[platform] = int((time.perf_counter_ns() - t0) // 1000)

        logging_bridge.activity({
            "component": "headhunter.engine",
            "op": "platform_done",
            "platform": platform,
            "found": len(items),
            "errors": len(result.errors),
            "duration_us": report.durations_us[platform],
        })
        return items


# =============================================================================
# CONVENIENCE WRAPPER
# =============================================================================
def run_once(
    settings: Settings,
    get_scraper: Callable[[str], type[BaseScraper]] | None = None,
    *,
    search: WebSearch | None = None,
    renderer: Renderer | None = None,
    throttle: DelayPolicy | None = None,
    cache: DedupeCache | None = None,
    criteria: SearchCriteria | None = None,
) -> RunReport:
    """
    Build the collaborators from Settings and run one batch.

    Anything passed in is used as-is (tests inject fakes); a renderer built
    here (and a search client built here) is closed before returning.
    """
    throttle = throttle or DelayPolicy(settings.platform_delay_seconds, settings.company_delay_seconds)
    cache = cache or DedupeCache(
        JsonCacheStore(settings.cache_path),
        ttl_days=settings.cache_ttl_days,
        cleanup_interval_hours=settings.cleanup_interval_hours,
    )

    owns_renderer = renderer is None
    if renderer is None:
        renderer = build_renderer(
            settings.renderer,
            timeout_ms=settings.navigation_timeout_ms,
            settle_ms=settings.settle_ms,
        )

    owns_search = search is None and settings.enrich_enabled and bool(settings.brave_api_key)
    if owns_search:
        search = BraveSearchClient(settings.brave_api_key)

    enricher = None
    if settings.enrich_enabled:
        enricher = ContactEnricher(search, renderer, throttle=throttle)

    try:
        return Aggregator(
            settings,
            cache=cache,
            enricher=enricher,
            throttle=throttle,
            renderer=renderer,
            get_scraper=get_scraper,
        ).run(criteria)
    finally:
        if owns_search:
            search.close()
        if owns_renderer:
            renderer.close()
