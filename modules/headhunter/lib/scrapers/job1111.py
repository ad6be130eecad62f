# modules/headhunter/lib/scrapers/job1111.py
from __future__ import annotations

from typing import Any
from urllib.parse import quote

from ..browser import RenderedPage
from ..models import Platform, SearchCriteria
from ..normalize import NEGOTIABLE
from ..utils import today_iso
from .base import BaseScraper
from .registry import register

# Card containers, tried in order; the first selector with hits wins.
_CARD_SELECTORS = (".job_item", ".joblist_item", '[class*="job-item"]', ".job-list-item")
_TITLE = 'a[href*="/job/"], h2, .job_name, .job-name'
_COMPANY = '.corp_name, .company-name, [class*="company"]'
_SALARY = '.salary, [class*="salary"]'
_AREA = '.job_area, .area, [class*="area"]'


@register
class Job1111Scraper(BaseScraper):
    """
    1111 人力銀行 (www.1111.com.tw).

    The listing markup changes often, so cards and fields are located through
    short fallback chains. 1111 shows no per-card update date; `last_updated`
    is the run date. There is no detail-page step.
    """

    kind = Platform.JOB1111.value
    BASE = "https://www.1111.com.tw"

    def search_url(self, criteria: SearchCriteria) -> str:
        url = f"{self.BASE}/search/job?ks={quote(criteria.keyword)}"
        if criteria.location:
            url += f"&d0={quote(criteria.location)}"
        return url

    def extract(self, page: RenderedPage, criteria: SearchCriteria) -> list[dict[str, Any]]:
        cards = []
        for sel in _CARD_SELECTORS:
            cards = page.find_all(sel)
            if cards:
                break

        today = today_iso()
        out: list[dict[str, Any]] = []
        for card in cards:
            title_el = card.select_one(_TITLE)
            if title_el is None:
                continue
            anchor = title_el if title_el.name == "a" else title_el.find_parent("a") or title_el.find("a", href=True)
            href = (anchor.get("href") or "").strip() if anchor is not None else ""
            company_el = card.select_one(_COMPANY)
            salary_el = card.select_one(_SALARY)
            area_el = card.select_one(_AREA)
            out.append({
                "title": title_el.get_text(" ", strip=True),
                "company": company_el.get_text(" ", strip=True) if company_el else "",
                "salary": (salary_el.get_text(" ", strip=True) if salary_el else "") or NEGOTIABLE,
                "location": area_el.get_text(" ", strip=True) if area_el else "",
                "link": page.absolute(href) if href else "",
                "last_updated": today,
            })
        return out
