"""
Contact Enrichment Engine.

For every company in a batch that still lacks contact details:
  1. discover its website through the web search collaborator (denylist applied),
  2. crawl the homepage plus up to two ranked contact/about pages,
  3. fold the per-page records "first non-empty wins" in visit order,
  4. fill only the fields each posting is missing.
Results are memoized per company for the duration of one enrich() call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from .. import logging_bridge
from ..browser import Renderer
from ..models import ContactRecord, JobPosting
from ..throttle import DelayPolicy, NoDelay
from ..utils import clean_text
from .crawl import PageContact, crawl_contacts
from .search import DEFAULT_DENYLIST, SearchError, WebSearch, pick_website

log = logging.getLogger(__name__)


@dataclass
class CompanyLookup:
    company: str
    website: str = ""
    contact: ContactRecord = field(default_factory=ContactRecord)
    pages: list[PageContact] = field(default_factory=list)
    error: str = ""


class ContactEnricher:
    def __init__(
        self,
        search: WebSearch | None,
        renderer: Renderer | None,
        *,
        throttle: DelayPolicy | None = None,
        denylist: Sequence[str] = DEFAULT_DENYLIST,
        query_template: str = "{company} 官網",
        result_count: int = 5,
        max_extra_pages: int = 2,
        page_timeout_ms: int = 15000,
    ):
        self.search = search
        self.renderer = renderer
        self.throttle = throttle or NoDelay()
        self.denylist = tuple(denylist)
        self.query_template = query_template
        self.result_count = int(result_count)
        self.max_extra_pages = int(max_extra_pages)
        self.page_timeout_ms = int(page_timeout_ms)
        self.memo: dict[str, ContactRecord] = {}

    @property
    def enabled(self) -> bool:
        return self.search is not None and self.renderer is not None

    # ---- batch ------------------------------------------------------------

    def enrich(
        self,
        postings: Iterable[JobPosting],
        *,
        should_stop: Callable[[], bool] | None = None,
    ) -> list[JobPosting]:
        """
        Return postings in the same order with missing contact fields filled
        where a company website yielded them. Never raises.
        """
        items = list(postings)
        self.memo = {}
        if not self.enabled:
            log.info("contact enrichment disabled (no search client or renderer)")
            return items

        out: list[JobPosting] = []
        lookups = 0
        stopped = False
        for p in items:
            if stopped or not p.needs_contact:
                out.append(p)
                continue
            key = clean_text(p.company)
            if not key:
                out.append(p)
                continue
            if key in self.memo:
                out.append(p.with_contact(self.memo[key]))
                continue

            if should_stop is not None and should_stop():
                stopped = True
                out.append(p)
                continue
            if lookups:
                self.throttle.between_companies()
            lookups += 1

            try:
                contact = self.lookup_company(key).contact
            except Exception as e:
                logging_bridge.error({
                    "component": "headhunter.enrichment",
                    "op": "lookup_failed",
                    "company": key,
                    "error": repr(e),
                })
                contact = ContactRecord()
            self.memo[key] = contact
            out.append(p.with_contact(contact))

        logging_bridge.activity({
            "component": "headhunter.enrichment",
            "op": "batch_done",
            "postings": len(items),
            "companies_looked_up": lookups,
            "companies_with_email": sum(1 for r in self.memo.values() if r.email),
            "stopped": stopped,
        })
        return out

    # ---- single company ---------------------------------------------------

    def find_website(self, company: str) -> str | None:
        if self.search is None:
            return None
        query = self.query_template.format(company=company)
        results = self.search.web_search(query, self.result_count)
        return pick_website(results, self.denylist)

    def lookup_company(self, company: str) -> CompanyLookup:
        """Discover + crawl one company. Failures are reported in .error, never raised."""
        result = CompanyLookup(company=company)
        if not self.enabled:
            result.error = "enrichment disabled"
            return result
        try:
            website = self.find_website(company)
        except SearchError as e:
            result.error = f"search failed: {e}"
            logging_bridge.warning({
                "component": "headhunter.enrichment",
                "op": "search_failed",
                "company": company,
                "error": repr(e),
            })
            return result

        if not website:
            result.error = "no website found"
            logging_bridge.activity({"component": "headhunter.enrichment", "op": "no_website", "company": company})
            return result

        result.website = website
        logging_bridge.activity({"component": "headhunter.enrichment", "op": "discovered", "company": company, "website": website})
        try:
            result.pages = crawl_contacts(
                self.renderer,
                website,
                max_extra_pages=self.max_extra_pages,
                timeout_ms=self.page_timeout_ms,
            )
        except Exception as e:
            result.error = f"crawl failed: {e!r}"
            logging_bridge.error({
                "component": "headhunter.enrichment",
                "op": "crawl_failed",
                "company": company,
                "website": website,
                "error": repr(e),
            })
            return result

        result.contact = ContactRecord.merged(pg.record for pg in result.pages)
        logging_bridge.activity({
            "component": "headhunter.enrichment",
            "op": "enriched",
            "company": company,
            "website": website,
            "pages": [pg.url for pg in result.pages],
            "has_person": bool(result.contact.person),
            "has_phone": bool(result.contact.phone),
            "has_email": bool(result.contact.email),
        })
        return result

    def lookup_companies(self, names: Iterable[str]) -> list[CompanyLookup]:
        """Reverse lookup by company name, one at a time with the company delay between."""
        out: list[CompanyLookup] = []
        for i, name in enumerate(n for n in (clean_text(x) for x in names) if n):
            if i:
                self.throttle.between_companies()
            out.append(self.lookup_company(name))
        return out
