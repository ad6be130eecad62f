# modules/headhunter/lib/scrapers/cake.py
from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

from ..browser import RenderedPage
from ..models import Platform, SearchCriteria
from ..normalize import experience_from_seniority, format_salary_range
from .base import BaseScraper, ScraperError
from .registry import register

log = logging.getLogger(__name__)


def _dig(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _first_location(job: dict[str, Any]) -> str:
    """Prefer the zh-TW localized name, then English, then the raw locations list."""
    localized = job.get("locationsWithLocale") or []
    if localized:
        for loc in localized:
            if isinstance(loc, dict) and loc.get("zh-TW"):
                return str(loc["zh-TW"])
        first = localized[0]
        if isinstance(first, dict):
            return str(first.get("en") or next(iter(first.values()), "") or "")
        return str(first)
    locations = job.get("locations") or []
    return str(locations[0]) if locations else ""


@register
class CakeScraper(BaseScraper):
    """
    Cake (www.cake.me, formerly CakeResume).

    The search page embeds its results as Next.js state in script#__NEXT_DATA__;
    no per-card DOM parsing is needed. Salary bounds are structured, so the
    minimum-salary filter compares the numeric `min` directly.
    """

    kind = Platform.CAKE.value
    wait_selector = "script#__NEXT_DATA__"
    BASE = "https://www.cake.me"

    def search_url(self, criteria: SearchCriteria) -> str:
        return f"{self.BASE}/jobs/{quote(criteria.keyword)}?location={quote(criteria.location)}"

    def extract(self, page: RenderedPage, criteria: SearchCriteria) -> list[dict[str, Any]]:
        script = page.select_one("script#__NEXT_DATA__")
        if script is None:
            raise ScraperError("cake: __NEXT_DATA__ not found")
        try:
            data = json.loads(script.string or script.get_text() or "")
        except ValueError as e:
            raise ScraperError(f"cake: __NEXT_DATA__ is not JSON: {e}") from e

        entities = _dig(data, "props", "pageProps", "initialState", "jobSearch", "entityByPathId") or {}
        if not isinstance(entities, dict):
            raise ScraperError("cake: unexpected jobSearch payload shape")

        out: list[dict[str, Any]] = []
        for job in entities.values():
            if not isinstance(job, dict):
                continue
            out.append(self._to_raw(job))
        return out

    def _to_raw(self, job: dict[str, Any]) -> dict[str, Any]:
        page_path = _dig(job, "page", "path")
        job_path = job.get("path")
        salary = job.get("salary") or {}
        return {
            "company": _dig(job, "page", "name") or "",
            "title": job.get("title") or "",
            "description": job.get("description") or "",
            "link": f"{self.BASE}/companies/{page_path}/jobs/{job_path}" if page_path and job_path else "",
            "salary": format_salary_range(salary.get("min"), salary.get("max"), salary.get("currency"), salary.get("type")),
            "salary_min": salary.get("min"),
            "location": _first_location(job),
            "experience": experience_from_seniority(job.get("seniorityLevel")),
            "last_updated": job.get("contentUpdatedAt") or "",
        }

    def accepts_salary(self, raw: dict[str, Any], criteria: SearchCriteria) -> bool:
        if criteria.min_salary <= 0:
            return True
        lo = raw.get("salary_min")
        if lo in (None, "", 0, "0"):
            return True
        try:
            return int(float(lo)) >= criteria.min_salary
        except (TypeError, ValueError):
            return True
