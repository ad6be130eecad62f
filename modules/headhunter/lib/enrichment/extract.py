"""
Contact field extraction from one rendered page.

Each field has an ordered list of pattern families; the first confident match
wins. Misses are normal and yield "".
"""

from __future__ import annotations

import re
from urllib.parse import unquote

from bs4.element import Tag

from ..browser import RenderedPage
from ..models import ContactRecord
from ..utils import clean_text

# ---- Phone ------------------------------------------------------------------

# Ordered: international mobile, international landline, parenthesized area code, hyphenated landline, mobile, toll-free.
PHONE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"(?<!\d){p}(?!\d)")
    for p in (
        r"\+886[-\s]?0?9\d{2}[-\s]?\d{3}[-\s]?\d{3}",
        r"\+886[-\s]?\(?0?[2-9]\)?[-\s]?\d{3,4}[-\s]?\d{4}",
        r"\(0[2-9]\d?\)[-\s]?\d{3,4}[-\s]?\d{4}",
        r"0[2-9][-\s]?\d{3,4}[-\s]?\d{4}",
        r"09\d{2}[-\s]?\d{3}[-\s]?\d{3}",
        r"0800[-\s]?\d{3}[-\s]?\d{3}",
    )
)

_REPEAT_RUN_RE = re.compile(r"(\d)\1{6,}")


def is_valid_phone(candidate: str) -> bool:
    """
    9-12 digits, and not a decorative placeholder: no leading run of five
    zeros, no digit repeated seven times in a row, not a single repeated digit.
    """
    digits = re.sub(r"\D", "", candidate or "")
    if not 9 <= len(digits) <= 12:
        return False
    if digits.startswith("00000") or len(set(digits)) == 1:
        return False
    return not _REPEAT_RUN_RE.search(digits)


def find_phone(text: str) -> str:
    for pattern in PHONE_PATTERNS:
        for m in pattern.finditer(text or ""):
            if is_valid_phone(m.group(0)):
                return clean_text(m.group(0))
    return ""


def footer_region(page: RenderedPage) -> Tag | None:
    return page.select_one("footer") or page.select_one('[class*="footer"]')


def extract_phone(page: RenderedPage) -> str:
    phone = find_phone(page.text())
    if phone:
        return phone
    # Footers often split numbers across inline tags; re-read without separators.
    footer = footer_region(page)
    if footer is None:
        return ""
    return find_phone(footer.get_text(""))


# ---- Email ------------------------------------------------------------------

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}")
NO_REPLY_RE = re.compile(r"no[-_.]?reply|do[-_.]?not[-_.]?reply", re.I)
PLACEHOLDER_DOMAINS = ("example.com", "example.org", "test.com", "domain.com", "email.com", "yourdomain.com", "sentry")
ASSET_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".css", ".js", ".woff", ".woff2", ".ico")
ROLE_TOKENS = (
    "info",
    "contact",
    "hr",
    "service",
    "support",
    "sales",
    "recruit",
    "career",
    "job",
    "hello",
    "admin",
    "招募",
    "人才",
)


def is_placeholder_domain(domain: str) -> bool:
    """Whole-label match, so "contest.com.tw" is not mistaken for "test.com"."""
    labels = domain.split(".")
    for p in PLACEHOLDER_DOMAINS:
        if "." in p:
            if domain == p or domain.endswith("." + p):
                return True
        elif p in labels:
            return True
    return False


def is_acceptable_email(addr: str) -> bool:
    a = (addr or "").strip().lower()
    if not EMAIL_RE.fullmatch(a):
        return False
    if NO_REPLY_RE.search(a):
        return False
    if a.endswith(ASSET_SUFFIXES):
        return False
    return not is_placeholder_domain(a.rsplit("@", 1)[1])


def is_role_address(addr: str) -> bool:
    local = (addr or "").split("@", 1)[0].lower()
    tokens = [t for t in re.split(r"[._+-]", local) if t]
    for role in ROLE_TOKENS:
        if not role.isascii():
            if role in local:
                return True
        elif any(t.startswith(role) for t in tokens):
            return True
    return False


def _mailto_addresses(page: RenderedPage) -> list[str]:
    out: list[str] = []
    for a in page.soup.find_all("a", href=re.compile(r"^\s*mailto:", re.I)):
        href = a.get("href") or ""
        addr = unquote(href.split(":", 1)[1]).split("?", 1)[0].strip()
        if addr:
            out.append(addr)
    return out


def extract_email(page: RenderedPage) -> str:
    for addr in _mailto_addresses(page):
        if is_acceptable_email(addr):
            return addr

    candidates = [m.group(0) for m in EMAIL_RE.finditer(page.text())]
    valid = [c for c in candidates if is_acceptable_email(c)]
    if not valid:
        return ""
    return next((c for c in valid if is_role_address(c)), valid[0])


# ---- Person -----------------------------------------------------------------

PERSON_SELECTORS: tuple[str, ...] = (
    '[class*="contact"] [class*="name"]',
    '[class*="contact-name"]',
    '[class*="contactName"]',
    '[class*="recruiter"]',
    '[class~="hr"]',
    '[class*="hr-name"]',
    '[class*="人資"]',
    '[class*="聯絡人"]',
    '[data-role*="recruiter"]',
)
_PERSON_MAX_CHARS = 40


def extract_person(page: RenderedPage) -> str:
    for sel in PERSON_SELECTORS:
        for el in page.find_all(sel):
            text = clean_text(el.get_text(" ", strip=True))
            if text and len(text) <= _PERSON_MAX_CHARS:
                return text
    return ""


def extract_contact(page: RenderedPage) -> ContactRecord:
    return ContactRecord(
        person=extract_person(page),
        phone=extract_phone(page),
        email=extract_email(page),
    )
