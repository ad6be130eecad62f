"""
Posting Normalizer.

Adapters extract a loose dict of raw fields with platform-specific locators;
everything below turns that dict into the canonical JobPosting the same way
for every platform.

Salary filtering is a documented approximation: the first integer in the
salary text is read as thousands unless an explicit unit (K/千/萬) follows it.
"月薪40,000~60,000元" therefore reads as 40 -> 40000, which happens to be right,
while "月薪35000元" reads as 35,000,000. Platforms with structured numeric
bounds (Cake) bypass the text heuristic entirely.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .models import JobPosting
from .utils import clean_text, truncate

NEGOTIABLE = "面議"

_FIRST_INT_RE = re.compile(r"(\d+)\s*(萬|万|千|[Kk])?")
_UNIT_MULTIPLIER = {"萬": 10000, "万": 10000, "千": 1000, "k": 1000, "K": 1000}

_PERIOD_UNITS = {
    "per_month": "月",
    "per_year": "年",
    "per_hour": "時",
    "per_day": "日",
}

SENIORITY_EXPERIENCE = {
    "entry_level": "0-2年",
    "mid_senior_level": "2-5年",
    "associate": "1-3年",
    "internship_level": "實習",
    "director": "5年以上",
    "executive": "10年以上",
}


def salary_floor(text: str | None) -> int | None:
    """
    First integer token of a salary string, scaled to currency units.
    Returns None when the text carries no number (e.g. "面議").
    """
    m = _FIRST_INT_RE.search(text or "")
    if not m:
        return None
    value = int(m.group(1))
    return value * _UNIT_MULTIPLIER.get(m.group(2) or "", 1000)


def passes_min_salary(salary_text: str | None, min_salary: int) -> bool:
    """Unparseable salaries are kept; only a readable, lower floor excludes a posting."""
    if min_salary <= 0:
        return True
    floor = salary_floor(salary_text)
    if floor is None:
        return True
    return floor >= min_salary


def format_salary_range(
    lo: Any,
    hi: Any = None,
    currency: str | None = "TWD",
    period: str | None = "per_month",
) -> str:
    """
    Human-readable range from structured bounds:
      (40000, 60000, "TWD", "per_month") -> "40000-60000 TWD/月"
      (40000, None, ...)                 -> "40000+ TWD/月"
    """
    if lo in (None, "", 0, "0"):
        return NEGOTIABLE
    unit = _PERIOD_UNITS.get(period or "", "月")
    cur = (currency or "").strip() or "TWD"
    if hi not in (None, "", 0, "0") and str(hi) != str(lo):
        return f"{lo}-{hi} {cur}/{unit}"
    return f"{lo}+ {cur}/{unit}"


def experience_from_seniority(level: str | None) -> str:
    return SENIORITY_EXPERIENCE.get((level or "").strip(), "")


def iso_date(value: Any) -> str:
    """
    Normalize an ISO timestamp or epoch (s or ms) to YYYY-MM-DD.
    Anything else is passed through cleaned (e.g. 104's "3/12").
    """
    if value in (None, ""):
        return ""
    if isinstance(value, (int, float)):
        ts = float(value)
        if ts > 1e12:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=timezone.utc).date().isoformat()
    s = clean_text(str(value))
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return s


def make_posting(
    platform: str,
    raw: Mapping[str, Any],
    *,
    description_max_chars: int = 300,
) -> JobPosting:
    """
    Convert one raw field set into a JobPosting.

    Raises ValueError when the item has no title: callers skip and log it.
    """
    title = clean_text(raw.get("title"))
    if not title:
        raise ValueError(f"{platform}: item without a title: {dict(raw)!r}")

    return JobPosting(
        source_platform=platform,
        company=clean_text(raw.get("company")),
        title=title,
        link=(raw.get("link") or "").strip(),
        salary_range=clean_text(raw.get("salary")) or NEGOTIABLE,
        location=clean_text(raw.get("location")),
        experience=clean_text(raw.get("experience")),
        description=truncate(raw.get("description"), description_max_chars),
        last_updated=iso_date(raw.get("last_updated")),
        contact_person=clean_text(raw.get("contact_person")),
        contact_phone=clean_text(raw.get("contact_phone")),
        contact_email=clean_text(raw.get("contact_email")),
        platform=platform,
    )
