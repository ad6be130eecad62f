from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

# Column order consumed by the CSV / spreadsheet exporters.
EXPORT_FIELDS: tuple[str, ...] = (
    "company",
    "title",
    "salary",
    "location",
    "experience",
    "description",
    "contact_person",
    "contact_phone",
    "contact_email",
    "link",
    "last_updated",
)


class Platform(str, Enum):
    """Listing platforms with a registered adapter."""

    JOB104 = "104"
    JOB1111 = "1111"
    CAKE = "cake"
    STUB = "stub"


@dataclass(frozen=True)
class SearchCriteria:
    """
    One search request handed to every enabled adapter.
    `extras` carries adapter-specific knobs (e.g. canned items for the stub).
    """

    keyword: str
    location: str = ""
    min_salary: int = 0
    max_results: int = 20
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContactRecord:
    person: str = ""
    phone: str = ""
    email: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.person and self.phone and self.email)

    @property
    def is_empty(self) -> bool:
        return not (self.person or self.phone or self.email)

    @classmethod
    def merged(cls, ranked: Iterable[ContactRecord]) -> ContactRecord:
        """
        Fold records in rank order: the first non-empty value wins per field.
        Earlier records (higher-priority pages) take precedence.
        """
        person = phone = email = ""
        for rec in ranked:
            person = person or rec.person
            phone = phone or rec.phone
            email = email or rec.email
        return cls(person=person, phone=phone, email=email)


@dataclass(frozen=True)
class JobPosting:
    """
    One normalized listing.

    Contact fields are always strings; "" means missing.
    `platform` is the tag applied by the orchestrator and may differ from
    `source_platform` when a posting is re-tagged for caching.
    """

    source_platform: str
    company: str
    title: str
    link: str = ""
    salary_range: str = ""
    location: str = ""
    experience: str = ""
    description: str = ""
    last_updated: str = ""
    contact_person: str = ""
    contact_phone: str = ""
    contact_email: str = ""
    platform: str = ""

    @property
    def contact(self) -> ContactRecord:
        return ContactRecord(self.contact_person, self.contact_phone, self.contact_email)

    @property
    def needs_contact(self) -> bool:
        return not self.contact.is_complete

    def tagged(self, platform: str) -> JobPosting:
        return replace(self, platform=platform)

    def with_contact(self, rec: ContactRecord) -> JobPosting:
        """Fill only the contact fields this posting is still missing."""
        return replace(
            self,
            contact_person=self.contact_person or rec.person,
            contact_phone=self.contact_phone or rec.phone,
            contact_email=self.contact_email or rec.email,
        )

    def to_row(self) -> list[str]:
        values = {
            "company": self.company,
            "title": self.title,
            "salary": self.salary_range,
            "location": self.location,
            "experience": self.experience,
            "description": self.description,
            "contact_person": self.contact_person,
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "link": self.link,
            "last_updated": self.last_updated,
        }
        return [values[name] for name in EXPORT_FIELDS]


@dataclass
class ScrapeResult:
    """
    Result bundle produced by one adapter search.
    - items: postings in source order (already salary-filtered and capped).
    - errors: non-fatal issues the adapter decided to surface.
    """

    platform: str
    items: list[JobPosting] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class RunReport:
    """Outcome of one orchestrated run, handed to export collaborators."""

    ok: bool = True
    reason: str = ""
    by_platform: dict[str, list[JobPosting]] = field(default_factory=dict)
    found_by_platform: dict[str, int] = field(default_factory=dict)
    duplicates: list[JobPosting] = field(default_factory=list)
    errors: dict[str, list[str]] = field(default_factory=dict)
    durations_us: dict[str, int] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def postings(self) -> list[JobPosting]:
        out: list[JobPosting] = []
        for items in self.by_platform.values():
            out.extend(items)
        return out

    def emailable(self) -> list[JobPosting]:
        return [p for p in self.postings if p.contact_email]

    def rows(self) -> list[list[str]]:
        return [p.to_row() for p in self.postings]
