from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlsplit

import requests

from ..http_client import HttpClient

log = logging.getLogger(__name__)

BRAVE_ENDPOINT = "https://api.search.brave.com/res/v1/web/search"

# Listing platforms, social networks and company directories: never a company's own site.
DEFAULT_DENYLIST: tuple[str, ...] = (
    "104.com",
    "1111.com",
    "518.com",
    "cakeresume",
    "cake.me",
    "yourator",
    "linkedin",
    "facebook",
    "instagram",
    "youtube",
    "twincn",
    "findcompany",
    "wikipedia",
)


class SearchError(Exception):
    """The web search collaborator could not answer."""


@dataclass(frozen=True)
class SearchResult:
    url: str
    title: str = ""
    description: str = ""


class WebSearch(ABC):
    """webSearch(query, count) -> results ordered by relevance; may be empty."""

    @abstractmethod
    def web_search(self, query: str, count: int = 5) -> list[SearchResult]:
        raise NotImplementedError

    def close(self) -> None:
        return None


class BraveSearchClient(WebSearch):
    """Brave Search web API (X-Subscription-Token auth)."""

    def __init__(self, api_key: str, client: HttpClient | None = None, *, endpoint: str = BRAVE_ENDPOINT):
        if not api_key:
            raise ValueError("BraveSearchClient requires an API key")
        self._api_key = api_key
        self._client = client or HttpClient(timeout=15.0)
        self.endpoint = endpoint

    def web_search(self, query: str, count: int = 5) -> list[SearchResult]:
        try:
            data = self._client.get_json(
                self.endpoint,
                params={"q": query, "count": int(count)},
                headers={"Accept": "application/json", "X-Subscription-Token": self._api_key},
            )
        except (requests.RequestException, ValueError) as e:
            raise SearchError(f"Brave search failed for {query!r}: {e!r}") from e

        if not isinstance(data, dict):
            return []
        if data.get("message"):
            # Quota / auth problems come back as {"message": ...}
            log.info("Brave search returned no web block for %r: %s", query, data.get("message"))
            return []
        results = ((data.get("web") or {}).get("results")) or []
        out: list[SearchResult] = []
        for r in results:
            if isinstance(r, dict) and r.get("url"):
                out.append(SearchResult(url=r["url"], title=r.get("title") or "", description=r.get("description") or ""))
        return out

    def close(self) -> None:
        self._client.close()


def is_denied(url: str, denylist: Iterable[str] = DEFAULT_DENYLIST) -> bool:
    host = (urlsplit(url).netloc or "").lower()
    if not host:
        return True
    return any(token in host for token in denylist)


def pick_website(results: Iterable[SearchResult], denylist: Iterable[str] = DEFAULT_DENYLIST) -> str | None:
    """First result whose host is not a listing/social/directory site."""
    deny = tuple(denylist)
    for r in results:
        if r.url.startswith(("http://", "https://")) and not is_denied(r.url, deny):
            return r.url
    return None
