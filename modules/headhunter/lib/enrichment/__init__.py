from __future__ import annotations

from .crawl import PageContact, crawl_contacts, rank_contact_links
from .enricher import CompanyLookup, ContactEnricher
from .extract import extract_contact, extract_email, extract_person, extract_phone, is_valid_phone
from .search import DEFAULT_DENYLIST, BraveSearchClient, SearchError, SearchResult, WebSearch, pick_website

__all__ = [
    "DEFAULT_DENYLIST",
    "BraveSearchClient",
    "CompanyLookup",
    "ContactEnricher",
    "PageContact",
    "SearchError",
    "SearchResult",
    "WebSearch",
    "crawl_contacts",
    "extract_contact",
    "extract_email",
    "extract_person",
    "extract_phone",
    "is_valid_phone",
    "pick_website",
    "rank_contact_links",
]
