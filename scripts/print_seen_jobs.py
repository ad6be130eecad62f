#!/usr/bin/env python3

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

# Allow running as `python scripts/print_seen_jobs.py` from a checkout
PROJECT_ROOT = Path(__file__).resolve().parent.parent  # ../scripts → project root
sys.path.insert(0, str(PROJECT_ROOT))

from modules.headhunter.lib.dedupe import CacheEntry, DedupeCache, JsonCacheStore  # noqa: E402

DEFAULT_CACHE = os.getenv("HEADHUNTER_CACHE_PATH", str(PROJECT_ROOT / "local" / "state" / "seen_jobs.json"))


def latest_entries(cache: DedupeCache, limit: int = 15) -> list[CacheEntry]:
    """Most recently seen entries first."""
    entries = [cache.entry(ident) for ident in cache.identities()]
    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries[:limit]


def format_timestamp(ms: int) -> str:
    """Epoch ms -> readable local time."""
    dt = datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")


def main():
    path = DEFAULT_CACHE
    if not os.path.exists(path):
        print(f"Cache file not found: {path}")
        sys.exit(1)

    # Parse optional limit
    limit = 15
    if len(sys.argv) > 1:
        try:
            limit = int(sys.argv[1])
            if limit <= 0:
                raise ValueError
        except ValueError:
            print(f"Invalid limit: {sys.argv[1]}. Using default (15).", file=sys.stderr)
            limit = 15

    cache = DedupeCache(JsonCacheStore(path))
    stats = cache.stats()

    print("=" * 80)
    print(f"CACHE: {path}")
    print(f"TOTAL: {stats['total']}  BY PLATFORM: {stats['by_platform']}")
    print(f"LAST CLEANUP: {stats['last_cleanup_iso'] or '-'}")
    print("-" * 80)

    for i, e in enumerate(latest_entries(cache, limit), 1):
        print(f"{i:2d}. [{format_timestamp(e.timestamp)}] ({e.platform})")
        print(f"     {e.company} | {e.title}")
        print(f"     ID: {e.identity}")
        print()


if __name__ == "__main__":
    main()
