from __future__ import annotations

import re
import time
from datetime import date, datetime, timezone
from typing import Any

_WS_RE = re.compile(r"\s+")


def truthy(v: Any) -> bool:
    """
    Normalize common truthy inputs from env/kwargs.
    Accepts bools or strings like: '1', 'true', 'yes', 'on'.
    """
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    if isinstance(v, (int, float)):
        return v != 0
    s = str(v).strip().lower()
    return s in {"1", "true", "yes", "on", "y", "t"}


def now_ms() -> int:
    """Wall-clock epoch milliseconds (the dedupe cache's timestamp unit)."""
    return int(time.time() * 1000)


def today_iso() -> str:
    return date.today().isoformat()


def clean_text(s: str | None) -> str:
    """Collapse runs of whitespace to a single space and strip."""
    if not s:
        return ""
    return _WS_RE.sub(" ", str(s)).strip()


def underscore_ws(s: str | None) -> str:
    """Strip, then collapse internal whitespace runs to single underscores."""
    return _WS_RE.sub("_", (s or "").strip())


def truncate(s: str | None, limit: int) -> str:
    text = clean_text(s)
    if limit <= 0:
        return text
    return text[:limit]


def ms_to_iso(ms: int | float | None) -> str:
    if not ms:
        return ""
    return datetime.fromtimestamp(float(ms) / 1000.0, tz=timezone.utc).isoformat().replace("+00:00", "Z")
