# modules/headhunter/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .config import ConfigError, Settings
from .dedupe import DedupeCache, JsonCacheStore
from .engine import Aggregator, run_once
from .models import EXPORT_FIELDS, ContactRecord, JobPosting, RunReport, SearchCriteria

# Importing the package registers the built-in adapters (104, 1111, cake, stub)
from . import scrapers as _scrapers  # noqa: F401

__all__ = [
    "EXPORT_FIELDS",
    "Aggregator",
    "ConfigError",
    "ContactRecord",
    "DedupeCache",
    "JobPosting",
    "JsonCacheStore",
    "RunReport",
    "SearchCriteria",
    "Settings",
    "run_once",
]
