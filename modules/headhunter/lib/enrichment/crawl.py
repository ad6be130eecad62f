from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urldefrag, urlsplit

from ..browser import RenderedPage, Renderer, RenderError
from ..models import ContactRecord
from .extract import extract_contact

log = logging.getLogger(__name__)

CONTACT_RE = re.compile(r"contact|聯絡|聯繫|客服", re.I)
ABOUT_RE = re.compile(r"about|關於|公司介紹|公司簡介", re.I)
# Any of these makes a link a candidate at all
CANDIDATE_RE = re.compile(r"contact|聯絡|聯繫|客服|about|關於|公司介紹|公司簡介|服務|招募|人才|career", re.I)


@dataclass(frozen=True)
class PageContact:
    """What one visited page yielded, in visit order."""

    url: str
    record: ContactRecord
    error: str = ""


def _host(url: str) -> str:
    host = (urlsplit(url).netloc or "").lower()
    return host[4:] if host.startswith("www.") else host


def _canonical(url: str) -> str:
    return urldefrag(url)[0].rstrip("/")


def link_priority(text: str, url: str) -> int:
    """3 = contact-like, 2 = about-like, 1 = other candidate keyword, 0 = not a candidate."""
    blob = f"{text} {url}"
    if CONTACT_RE.search(blob):
        return 3
    if ABOUT_RE.search(blob):
        return 2
    if CANDIDATE_RE.search(blob):
        return 1
    return 0


def rank_contact_links(page: RenderedPage, *, limit: int = 2) -> list[str]:
    """
    Same-site candidate links from `page`, highest priority first; ties keep
    DOM order. The page's own URL is never returned.
    """
    site = _host(page.url)
    home = _canonical(page.url)
    seen: set[str] = set()
    scored: list[tuple[int, int, str]] = []
    for order, (text, url) in enumerate(page.links()):
        canon = _canonical(url)
        if canon == home or canon in seen or _host(url) != site:
            continue
        prio = link_priority(text, url)
        if prio == 0:
            continue
        seen.add(canon)
        scored.append((-prio, order, url))
    scored.sort()
    return [url for _, _, url in scored[:limit]]


def crawl_contacts(
    renderer: Renderer,
    website: str,
    *,
    max_extra_pages: int = 2,
    timeout_ms: int | None = None,
    extractor: Callable[[RenderedPage], ContactRecord] = extract_contact,
) -> list[PageContact]:
    """
    Visit the homepage, then up to `max_extra_pages` ranked contact/about
    pages. Stops early once phone and email are both known. A page that fails
    to load contributes an empty record; it never stops the crawl.
    """
    visited: list[PageContact] = []
    try:
        home = renderer.render(website, timeout_ms=timeout_ms)
    except RenderError as e:
        log.info("homepage failed for %s: %s", website, e)
        return [PageContact(url=website, record=ContactRecord(), error=repr(e))]

    visited.append(PageContact(url=home.url, record=extractor(home)))
    if _has_phone_and_email(visited):
        return visited

    for url in rank_contact_links(home, limit=max_extra_pages):
        try:
            page = renderer.render(url, timeout_ms=timeout_ms)
            visited.append(PageContact(url=url, record=extractor(page)))
        except RenderError as e:
            log.info("contact page failed %s: %s", url, e)
            visited.append(PageContact(url=url, record=ContactRecord(), error=repr(e)))
        if _has_phone_and_email(visited):
            break
    return visited


def _has_phone_and_email(visited: list[PageContact]) -> bool:
    merged = ContactRecord.merged(v.record for v in visited)
    return bool(merged.phone and merged.email)
