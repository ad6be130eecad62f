# headhunter/scrapers/__init__.py
from __future__ import annotations

# Importing the adapter modules registers them with the registry.
from .base import BaseScraper, ScraperError
from .cake import CakeScraper
from .job104 import Job104Scraper
from .job1111 import Job1111Scraper
from .registry import all_kinds, get, register
from .stub import StubScraper

__all__ = [
    "BaseScraper",
    "CakeScraper",
    "Job104Scraper",
    "Job1111Scraper",
    "ScraperError",
    "StubScraper",
    "all_kinds",
    "get",
    "register",
]
