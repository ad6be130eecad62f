"""
Rendering collaborator.

Adapters and the contact crawler only ever see `RenderedPage` objects and the
`Renderer.render / Renderer.follow` pair, so a plain HTTP fetcher and a
headless browser are interchangeable (and tests can serve canned HTML).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup  # pip install beautifulsoup4 html5lib
from bs4.element import Tag

from .http_client import BROWSER_UA, HttpClient

log = logging.getLogger(__name__)


class RenderError(Exception):
    """Navigation failed, timed out, or the awaited selector never appeared."""


@dataclass
class RenderedPage:
    url: str
    html: str
    _soup: BeautifulSoup | None = field(default=None, repr=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html or "", "html5lib")
        return self._soup

    def text(self) -> str:
        root = self.soup.body or self.soup
        return root.get_text(" ", strip=True)

    def find_all(self, selector: str) -> list[Tag]:
        return list(self.soup.select(selector))

    def select_one(self, selector: str) -> Tag | None:
        return self.soup.select_one(selector)

    def absolute(self, href: str) -> str:
        return urljoin(self.url, href)

    def links(self) -> list[tuple[str, str]]:
        """Return [(anchor_text, absolute_url)] for every http(s) anchor, in DOM order."""
        out: list[tuple[str, str]] = []
        for a in self.soup.find_all("a", href=True):
            href = (a.get("href") or "").strip()
            if not href or href.startswith(("#", "javascript:", "mailto:", "tel:")):
                continue
            url = self.absolute(href)
            if url.startswith(("http://", "https://")):
                out.append((a.get_text(" ", strip=True), url))
        return out


class Renderer(ABC):
    """
    Contract:
      - render(url, wait_for, timeout_ms) returns the page after load (and the
        settle delay, where the implementation has one).
      - Any failure raises RenderError; callers decide whether it is fatal.
    """

    @abstractmethod
    def render(self, url: str, *, wait_for: str | None = None, timeout_ms: int | None = None) -> RenderedPage:
        raise NotImplementedError

    def follow(self, page: RenderedPage, target: Tag | str, *, wait_for: str | None = None) -> RenderedPage:
        """Open a link found on `page` (an anchor element or a raw href)."""
        href = target.get("href") if isinstance(target, Tag) else target
        if not href:
            raise RenderError(f"Nothing to follow on {page.url!r}")
        return self.render(page.absolute(str(href)), wait_for=wait_for)

    def close(self) -> None:
        return None

    def __enter__(self) -> Renderer:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class HttpRenderer(Renderer):
    """
    Static fetch + parse. `wait_for` becomes a presence check on the returned
    HTML, so a missing results container fails the same way a browser timeout would.
    """

    def __init__(self, client: HttpClient | None = None, *, timeout_ms: int = 30000):
        self.timeout_ms = int(timeout_ms)
        self._client = client or HttpClient(timeout=self.timeout_ms / 1000.0)

    def render(self, url: str, *, wait_for: str | None = None, timeout_ms: int | None = None) -> RenderedPage:
        timeout = (timeout_ms or self.timeout_ms) / 1000.0
        try:
            resp = self._client.get_page(url, timeout=timeout)
        except requests.RequestException as e:
            raise RenderError(f"GET {url!r} failed: {e!r}") from e

        # Relative links resolve against where the redirects ended, not the requested URL
        page = RenderedPage(url=resp.url or url, html=resp.text)
        if wait_for and not page.find_all(wait_for):
            raise RenderError(f"Selector {wait_for!r} not present on {url!r}")
        return page

    def close(self) -> None:
        self._client.close()


class PlaywrightRenderer(Renderer):
    """
    Headless Chromium via Playwright (pip install playwright && playwright install chromium).
    One browser per renderer; pages are reused and the browser is closed by close().
    """

    def __init__(
        self,
        *,
        timeout_ms: int = 30000,
        settle_ms: int = 2000,
        wait_until: str = "domcontentloaded",
        user_agent: str = BROWSER_UA,
    ):
        self.timeout_ms = int(timeout_ms)
        self.settle_ms = int(settle_ms)
        self.wait_until = wait_until
        self.user_agent = user_agent
        self._pw = None
        self._browser = None
        self._page = None

    def _ensure_page(self):
        if self._page is None:
            from playwright.sync_api import sync_playwright  # heavy; only when this renderer is chosen

            self._pw = sync_playwright().start()
            self._browser = self._pw.chromium.launch(headless=True)
            context = self._browser.new_context(
                user_agent=self.user_agent,
                extra_http_headers={"Accept-Language": "zh-TW,zh;q=0.9,en;q=0.8"},
            )
            self._page = context.new_page()
        return self._page

    def render(self, url: str, *, wait_for: str | None = None, timeout_ms: int | None = None) -> RenderedPage:
        timeout = timeout_ms or self.timeout_ms
        page = self._ensure_page()
        try:
            page.goto(url, wait_until=self.wait_until, timeout=timeout)
            if wait_for:
                page.wait_for_selector(wait_for, timeout=timeout)
            if self.settle_ms:
                page.wait_for_timeout(self.settle_ms)
            return RenderedPage(url=page.url or url, html=page.content())
        except Exception as e:
            raise RenderError(f"Render {url!r} failed: {e!r}") from e

    def close(self) -> None:
        try:
            if self._browser is not None:
                self._browser.close()
            if self._pw is not None:
                self._pw.stop()
        except Exception:
            log.debug("PlaywrightRenderer.close() swallow", exc_info=True)
        finally:
            self._pw = self._browser = self._page = None


def build_renderer(kind: str, *, timeout_ms: int, settle_ms: int) -> Renderer:
    if kind == "playwright":
        return PlaywrightRenderer(timeout_ms=timeout_ms, settle_ms=settle_ms)
    return HttpRenderer(timeout_ms=timeout_ms)
