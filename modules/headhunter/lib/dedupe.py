"""
Deduplication cache.

One JSON snapshot shared by every platform and run:

    {"jobs": {<identity>: {"timestamp": ms, "company": ..., "title": ..., "platform": ...}},
     "lastCleanup": ms}

The whole snapshot is read into memory on first use and written back whole
after every mutation. A single writer per cache file is assumed.
"""

from __future__ import annotations

import contextlib
import json
import logging
import math
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from . import logging_bridge
from .models import JobPosting
from .utils import ms_to_iso, now_ms, underscore_ws

log = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
HOUR_MS = 60 * 60 * 1000


class CacheReadError(Exception):
    """Backing store exists but cannot be read or parsed."""


def _finite_number(value: Any) -> bool:
    # json.load accepts NaN and Infinity
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


# ---- Identity ---------------------------------------------------------------


def identity_of(posting: JobPosting) -> str:
    """
    Dedupe key: the link when present, else "<company>_<title>" with each part
    stripped and its whitespace runs collapsed to single underscores.
    """
    link = (posting.link or "").strip()
    if link:
        return link
    return f"{underscore_ws(posting.company)}_{underscore_ws(posting.title)}"


@dataclass(frozen=True)
class CacheEntry:
    identity: str
    timestamp: int
    company: str = ""
    title: str = ""
    platform: str = "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "company": self.company,
            "title": self.title,
            "platform": self.platform,
        }

    @classmethod
    def from_dict(cls, identity: str, raw: dict[str, Any]) -> CacheEntry:
        return cls(
            identity=identity,
            timestamp=int(raw["timestamp"]),
            company=str(raw.get("company") or ""),
            title=str(raw.get("title") or ""),
            platform=str(raw.get("platform") or "unknown"),
        )


# ---- Persistence ------------------------------------------------------------


class CacheStore(ABC):
    """Read-whole / write-whole store for the cache snapshot."""

    @abstractmethod
    def load(self) -> dict[str, Any] | None:
        """Return the snapshot, None if nothing was stored yet. Raise CacheReadError if unreadable."""

    @abstractmethod
    def save(self, snapshot: dict[str, Any]) -> None:
        """Persist the snapshot; may raise OSError."""


class JsonCacheStore(CacheStore):
    def __init__(self, path: str):
        self.path = path

    def load(self) -> dict[str, Any] | None:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CacheReadError(f"Cannot read dedupe cache {self.path!r}: {e!r}") from e
        if not isinstance(data, dict):
            raise CacheReadError(f"Dedupe cache {self.path!r} is not a JSON object")
        return data

    def save(self, snapshot: dict[str, Any]) -> None:
        d = os.path.dirname(os.path.abspath(self.path)) or "."
        os.makedirs(d, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".seen_jobs.", suffix=".tmp", dir=d)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp)
            raise

    def reset(self) -> None:
        """Remove the cache file entirely (for fixtures). Safe if it doesn't exist."""
        with contextlib.suppress(FileNotFoundError):
            os.remove(self.path)


# ---- Cache ------------------------------------------------------------------


class DedupeCache:
    """
    Contract:
      - filter(postings) -> (unique, duplicates), source order preserved in both.
      - mark_seen(postings) is idempotent per identity and only ever moves a
        timestamp forward.
      - cleanup_expired() drops exactly the entries older than the TTL.
      - stats() -> {"total", "by_platform", "last_cleanup"}.
    Expired entries count as absent immediately; they are physically removed
    only by a cleanup pass, which filter() triggers at most once per interval.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        ttl_days: float = 7.0,
        cleanup_interval_hours: float = 24.0,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.ttl_ms = int(ttl_days * DAY_MS)
        self.cleanup_interval_ms = int(cleanup_interval_hours * HOUR_MS)
        self._clock = clock
        self._jobs: dict[str, dict[str, Any]] | None = None
        self._last_cleanup = 0

    # ---- Public API ---------------------------------------------------------

    def is_duplicate(self, posting: JobPosting) -> bool:
        return self._is_live(identity_of(posting), self._clock())

    def filter(
        self,
        postings: Iterable[JobPosting],
        *,
        mark_seen: bool = True,
        cleanup: bool = True,
    ) -> tuple[list[JobPosting], list[JobPosting]]:
        """
        Split postings into (unique, duplicates).

        With mark_seen, each survivor is recorded as it passes, so a second
        posting with the same identity later in the same batch is a duplicate.
        """
        self._ensure_loaded()
        now = self._clock()
        dirty = False

        if cleanup and now - self._last_cleanup > self.cleanup_interval_ms:
            self._cleanup(now)
            dirty = True

        unique: list[JobPosting] = []
        duplicates: list[JobPosting] = []
        for p in postings:
            ident = identity_of(p)
            if self._is_live(ident, now):
                duplicates.append(p)
                continue
            unique.append(p)
            if mark_seen:
                self._record(ident, p, now)
                dirty = True

        if dirty:
            self._persist("filter")

        logging_bridge.activity({
            "component": "headhunter.dedupe",
            "op": "filter",
            "unique": len(unique),
            "duplicates": len(duplicates),
            "marked": mark_seen,
        })
        return unique, duplicates

    def mark_seen(self, postings: Iterable[JobPosting]) -> int:
        """Record postings as seen now; returns how many identities were written."""
        self._ensure_loaded()
        now = self._clock()
        n = 0
        for p in postings:
            self._record(identity_of(p), p, now)
            n += 1
        if n:
            self._persist("mark_seen")
        return n

    def cleanup_expired(self) -> int:
        """Force a cleanup pass regardless of when the last one ran."""
        self._ensure_loaded()
        removed = self._cleanup(self._clock())
        self._persist("cleanup")
        return removed

    def stats(self) -> dict[str, Any]:
        self._ensure_loaded()
        by_platform: dict[str, int] = {}
        for raw in self._jobs.values():
            plat = str(raw.get("platform") or "unknown")
            by_platform[plat] = by_platform.get(plat, 0) + 1
        return {
            "total": len(self._jobs),
            "by_platform": by_platform,
            "last_cleanup": self._last_cleanup,
            "last_cleanup_iso": ms_to_iso(self._last_cleanup),
        }

    def entry(self, identity: str) -> CacheEntry | None:
        self._ensure_loaded()
        raw = self._jobs.get(identity)
        return CacheEntry.from_dict(identity, raw) if raw is not None else None

    def identities(self) -> list[str]:
        self._ensure_loaded()
        return list(self._jobs)

    def clear(self) -> None:
        self._jobs = {}
        self._last_cleanup = self._clock()
        self._persist("clear")

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._jobs)

    # ---- Internal utilities -------------------------------------------------

    def _ensure_loaded(self) -> None:
        if self._jobs is not None:
            return
        try:
            snapshot = self.store.load()
        except CacheReadError as e:
            logging_bridge.warning({
                "component": "headhunter.dedupe",
                "op": "cache_load_failed",
                "error": repr(e),
            })
            log.warning("Dedupe cache unreadable, starting empty: %s", e)
            snapshot = None

        if snapshot is None:
            self._jobs = {}
            self._last_cleanup = self._clock()
            return

        jobs = snapshot.get("jobs")
        self._jobs = {}
        skipped = 0
        if isinstance(jobs, dict):
            for ident, raw in jobs.items():
                if isinstance(raw, dict) and _finite_number(raw.get("timestamp")):
                    self._jobs[str(ident)] = raw
                else:
                    skipped += 1
        if skipped:
            log.warning("Dropped %d malformed dedupe cache rows", skipped)
        try:
            self._last_cleanup = int(snapshot.get("lastCleanup") or 0)
        except (TypeError, ValueError):
            self._last_cleanup = 0

    def _is_live(self, identity: str, now: int) -> bool:
        self._ensure_loaded()
        raw = self._jobs.get(identity)
        if raw is None:
            return False
        return now - int(raw["timestamp"]) <= self.ttl_ms

    def _record(self, identity: str, posting: JobPosting, now: int) -> None:
        prev = self._jobs.get(identity)
        ts = now if prev is None else max(now, int(prev["timestamp"]))
        self._jobs[identity] = CacheEntry(
            identity=identity,
            timestamp=ts,
            company=posting.company,
            title=posting.title,
            platform=posting.platform or posting.source_platform or "unknown",
        ).to_dict()

    def _cleanup(self, now: int) -> int:
        expired = [k for k, raw in self._jobs.items() if now - int(raw["timestamp"]) > self.ttl_ms]
        for k in expired:
            del self._jobs[k]
        self._last_cleanup = now
        if expired:
            logging_bridge.activity({
                "component": "headhunter.dedupe",
                "op": "cleanup",
                "removed": len(expired),
                "remaining": len(self._jobs),
            })
        return len(expired)

    def _snapshot(self) -> dict[str, Any]:
        return {"jobs": self._jobs, "lastCleanup": self._last_cleanup}

    def _persist(self, op: str) -> None:
        try:
            self.store.save(self._snapshot())
        except OSError as e:
            logging_bridge.error({
                "component": "headhunter.dedupe",
                "op": "save_failed",
                "during": op,
                "error": repr(e),
            })
            log.error("Dedupe cache save failed during %s: %s", op, e)
