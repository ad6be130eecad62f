# modules/headhunter/lib/scrapers/job104.py
from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

from ..browser import RenderedPage
from ..models import Platform, SearchCriteria
from ..normalize import NEGOTIABLE
from ..utils import clean_text
from .base import BaseScraper
from .registry import register

log = logging.getLogger(__name__)

_CONTACT_RE = re.compile(r"聯絡人[:：\s]*([^\s應徵回]+)")


@register
class Job104Scraper(BaseScraper):
    """
    104 人力銀行 (www.104.com.tw).

    Result cards are `.job-summary`; salary, location and experience share the
    `.info-tags__text` chips and are told apart by their wording. When
    `fetch_details` is on, each kept card's detail page supplies the job
    description and the 聯絡人 name. 104 area filters need numeric codes, so
    `criteria.location` is not sent.
    """

    kind = Platform.JOB104.value
    wait_selector = ".job-summary"
    BASE = "https://www.104.com.tw"

    def __init__(self, *args: Any, detail_pause_every: int = 3, detail_pause_seconds: float = 3.0, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.detail_pause_every = int(detail_pause_every)
        self.detail_pause_seconds = float(detail_pause_seconds)
        self._details_fetched = 0

    def search_url(self, criteria: SearchCriteria) -> str:
        return f"{self.BASE}/jobs/search/?keyword={quote(criteria.keyword)}"

    def extract(self, page: RenderedPage, criteria: SearchCriteria) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for card in page.find_all(".job-summary"):
            company_el = card.select_one(".info-company__text")
            title_el = card.select_one(".info-job__text")
            date_el = card.select_one(".date-container")

            href = (title_el.get("href") or "").strip() if title_el else ""
            raw: dict[str, Any] = {
                "company": company_el.get_text(" ", strip=True) if company_el else "",
                "title": title_el.get_text(" ", strip=True) if title_el else "",
                "link": page.absolute(href) if href else "",
                "salary": NEGOTIABLE,
                "location": "",
                "experience": "",
                "last_updated": date_el.get_text(" ", strip=True) if date_el else "",
            }
            for tag in card.select(".info-tags .info-tags__text"):
                text = tag.get_text(" ", strip=True)
                if "市" in text or "縣" in text:
                    raw["location"] = text
                elif "經歷" in text:
                    raw["experience"] = text
                elif any(k in text for k in ("月薪", "年薪", "時薪", "元")):
                    raw["salary"] = text
            out.append(raw)
        return out

    def fetch_detail(self, raw: dict[str, Any]) -> dict[str, Any]:
        link = raw.get("link") or ""
        if not link or self.renderer is None:
            return {}

        # Pace detail visits: a short rest after every few pages
        if self._details_fetched and self.detail_pause_every and self._details_fetched % self.detail_pause_every == 0:
            self._sleep(self.detail_pause_seconds)
        self._details_fetched += 1

        page = self.renderer.render(link)
        desc_el = page.select_one(".job-description__content")
        return {
            "description": clean_text(desc_el.get_text(" ", strip=True)) if desc_el else "",
            "contact_person": self._contact_person(page),
        }

    @staticmethod
    def _contact_person(page: RenderedPage) -> str:
        for node in page.soup.find_all(string=re.compile("聯絡人")):
            scope = node.parent
            # Label and value usually sit in sibling nodes under one small container
            for el in (scope, scope.parent if scope is not None else None):
                if el is None:
                    continue
                m = _CONTACT_RE.search(el.get_text(" ", strip=True))
                if m:
                    return m.group(1)
        return ""
