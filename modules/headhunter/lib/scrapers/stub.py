from __future__ import annotations

from typing import Any

from ..browser import RenderedPage
from ..models import Platform, SearchCriteria
from .base import BaseScraper
from .registry import register


@register
class StubScraper(BaseScraper):
    """
    A zero-network adapter for dry-runs and tests.

    criteria.extras may contain:
      - stub_items: list[dict]   raw field sets (company, title, link, salary, ...)
      - stub_error: str          raise this as a search failure instead

    Items without a title are skipped like any malformed item; salary
    filtering and the max_results cap apply as for real platforms.
    """

    kind = Platform.STUB.value
    uses_network = False

    def search_url(self, criteria: SearchCriteria) -> str:
        return "stub://search"

    def fetch_raw(self, criteria: SearchCriteria) -> list[dict[str, Any]]:
        err = criteria.extras.get("stub_error")
        if err:
            raise RuntimeError(str(err))
        items = criteria.extras.get("stub_items") or []
        return [dict(i) for i in items if isinstance(i, dict)]

    def extract(self, page: RenderedPage, criteria: SearchCriteria) -> list[dict[str, Any]]:
        return []
