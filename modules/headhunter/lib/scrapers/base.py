from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from ..browser import RenderedPage, Renderer
from ..models import JobPosting, ScrapeResult, SearchCriteria
from ..normalize import make_posting, passes_min_salary

log = logging.getLogger(__name__)


class ScraperError(Exception):
    """Base exception for adapter failures (selector missing, bad payload...)."""


class BaseScraper(ABC):
    """
    Abstract listing-platform adapter.

    Contract:
      - search(criteria) returns canonical JobPostings in source order, already
        salary-filtered and capped at criteria.max_results.
      - A malformed item is skipped and logged; a failed search yields [] (run()
        also reports the error text). Nothing here raises to the orchestrator.
      - Do NOT touch the dedupe cache, enrichment, or global state.

    Subclasses provide:
      - search_url(criteria)         platform query URL
      - extract(page, criteria)      list of raw field dicts from the results page
    and may override:
      - wait_selector                selector the renderer waits for (None = no wait)
      - accepts_salary(raw, ...)     platform-specific salary filtering
      - fetch_detail(raw)            extra fields from the posting's detail page
    """

    # Concrete subclasses MUST set this to a stable string, e.g. "104", "1111", "cake"
    kind: str = ""
    wait_selector: str | None = None
    # False for adapters that never leave the process (honoured by skip_network runs)
    uses_network: bool = True

    def __init__(
        self,
        renderer: Renderer | None = None,
        *,
        description_max_chars: int = 300,
        fetch_details: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        **_: Any,
    ) -> None:
        self.renderer = renderer
        self.description_max_chars = int(description_max_chars)
        self.fetch_details = bool(fetch_details)
        self._sleep = sleep

    # ---- public -----------------------------------------------------------

    def search(self, criteria: SearchCriteria) -> list[JobPosting]:
        return self.run(criteria).items

    def run(self, criteria: SearchCriteria) -> ScrapeResult:
        result = ScrapeResult(platform=self.kind)
        try:
            raws = self.fetch_raw(criteria)
        except Exception as e:
            log.warning("%s: search failed: %r", self.kind, e)
            result.errors.append(f"{self.kind}: {e!r}")
            return result

        for idx, raw in enumerate(raws):
            if len(result.items) >= criteria.max_results:
                break
            try:
                if not self.accepts_salary(raw, criteria):
                    continue
                if self.fetch_details:
                    raw = {**raw, **self._detail_or_empty(raw, idx)}
                result.items.append(make_posting(self.kind, raw, description_max_chars=self.description_max_chars))
            except Exception as e:
                log.info("%s: skipping item %d: %r", self.kind, idx, e)
                result.errors.append(f"{self.kind}[{idx}]: {e!r}")
        return result

    # ---- extension points -------------------------------------------------

    @abstractmethod
    def search_url(self, criteria: SearchCriteria) -> str:
        raise NotImplementedError

    @abstractmethod
    def extract(self, page: RenderedPage, criteria: SearchCriteria) -> list[dict[str, Any]]:
        raise NotImplementedError

    def fetch_raw(self, criteria: SearchCriteria) -> list[dict[str, Any]]:
        if self.renderer is None:
            raise ScraperError(f"{self.kind}: no renderer configured")
        url = self.search_url(criteria)
        log.info("%s: visiting %s", self.kind, url)
        page = self.renderer.render(url, wait_for=self.wait_selector)
        raws = self.extract(page, criteria)
        log.info("%s: %d raw items", self.kind, len(raws))
        return raws

    def accepts_salary(self, raw: dict[str, Any], criteria: SearchCriteria) -> bool:
        return passes_min_salary(raw.get("salary"), criteria.min_salary)

    def fetch_detail(self, raw: dict[str, Any]) -> dict[str, Any]:
        return {}

    # ---- internals --------------------------------------------------------

    def _detail_or_empty(self, raw: dict[str, Any], idx: int) -> dict[str, Any]:
        """A failed detail page keeps the posting with empty detail fields."""
        try:
            return self.fetch_detail(raw)
        except Exception as e:
            log.info("%s: detail page failed for item %d: %r", self.kind, idx, e)
            return {}
