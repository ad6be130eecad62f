from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .models import Platform, SearchCriteria
from .utils import truthy


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env cannot form a valid Settings."""


DEFAULT_PLATFORMS = (Platform.JOB104.value, Platform.JOB1111.value, Platform.CAKE.value)
RENDERERS = ("http", "playwright")


# -----------------------------
# Models
# -----------------------------
@dataclass
class Settings:
    """
    Canonical configuration for one 'headhunter' run.

    Built once by the caller and passed into the orchestrator; leaf components
    receive the individual values they need at construction.
    """

    # Search criteria
    keyword: str = "AI 工程師"
    location: str = ""
    min_salary: int = 0
    max_results: int = 20
    platforms: list[str] = field(default_factory=lambda: list(DEFAULT_PLATFORMS))

    # Dedupe cache
    cache_path: str = "/app/local/state/seen_jobs.json"
    cache_ttl_days: float = 7.0
    cleanup_interval_hours: float = 24.0

    # Enrichment
    enrich_enabled: bool = True
    brave_api_key: str = field(default="", repr=False)

    # Politeness
    platform_delay_seconds: float = 3.0
    company_delay_seconds: float = 2.0

    # Rendering
    renderer: str = "http"
    navigation_timeout_ms: int = 30000
    settle_ms: int = 2000
    fetch_details: bool = True
    description_max_chars: int = 300

    skip_network: bool = False

    # ------------- convenience -------------
    def criteria(self, **extras: Any) -> SearchCriteria:
        return SearchCriteria(
            keyword=self.keyword,
            location=self.location,
            min_salary=self.min_salary,
            max_results=self.max_results,
            extras=dict(extras),
        )

    # ------------- constructors -------------
    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None) -> Settings:
        """
        Build Settings from kwargs with validation. kwargs win over env.

        Recognised env:
            HEADHUNTER_CACHE_PATH, BRAVE_API_KEY / BRAVE_SEARCH_API_KEY,
            HEADHUNTER_RENDERER, HEADHUNTER_PLATFORMS
        """
        kw = dict(kwargs or {})

        def pick(name: str, env: str | None = None, default: Any = None) -> Any:
            val = kw.get(name)
            if val is None and env:
                val = os.getenv(env)
            return default if val is None or val == "" else val

        api_key = pick("brave_api_key", "BRAVE_API_KEY") or os.getenv("BRAVE_SEARCH_API_KEY") or ""

        try:
            settings = cls(
                keyword=str(pick("keyword", default=cls.keyword)).strip(),
                location=str(pick("location", default="")).strip(),
                min_salary=int(pick("min_salary", default=0)),
                max_results=int(pick("max_results", default=20)),
                platforms=_parse_platforms(pick("platforms", "HEADHUNTER_PLATFORMS", list(DEFAULT_PLATFORMS))),
                cache_path=str(pick("cache_path", "HEADHUNTER_CACHE_PATH", cls.cache_path)),
                cache_ttl_days=float(pick("cache_ttl_days", default=7.0)),
                cleanup_interval_hours=float(pick("cleanup_interval_hours", default=24.0)),
                enrich_enabled=truthy(pick("enrich_enabled", default=True)),
                brave_api_key=str(api_key).strip(),
                platform_delay_seconds=float(pick("platform_delay_seconds", default=3.0)),
                company_delay_seconds=float(pick("company_delay_seconds", default=2.0)),
                renderer=str(pick("renderer", "HEADHUNTER_RENDERER", "http")).strip().lower(),
                navigation_timeout_ms=int(pick("navigation_timeout_ms", default=30000)),
                settle_ms=int(pick("settle_ms", default=2000)),
                fetch_details=truthy(pick("fetch_details", default=True)),
                description_max_chars=int(pick("description_max_chars", default=300)),
                skip_network=truthy(pick("skip_network", default=False)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid headhunter setting: {e}") from e

        _validate_settings(settings)
        return settings


# -----------------------------
# Helpers
# -----------------------------
def _parse_platforms(value: Any) -> list[str]:
    """
    Accept a list or a comma-delimited string. Order is preserved; duplicates dropped.
    An empty result is allowed here and reported by the orchestrator.
    """
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, (list, tuple)):
        raw = list(value)
    else:
        raise ConfigError("'platforms' must be a list or comma-separated string.")
    out: list[str] = []
    for item in raw:
        name = str(item).strip().lower()
        if name and name not in out:
            out.append(name)
    return out


def _validate_settings(s: Settings) -> None:
    if s.max_results < 1:
        raise ConfigError("'max_results' must be >= 1.")
    if s.min_salary < 0:
        raise ConfigError("'min_salary' cannot be negative.")
    if not s.cache_path.strip():
        raise ConfigError("'cache_path' cannot be empty.")
    if s.cache_ttl_days <= 0:
        raise ConfigError("'cache_ttl_days' must be > 0.")
    if s.cleanup_interval_hours < 0:
        raise ConfigError("'cleanup_interval_hours' cannot be negative.")
    if s.platform_delay_seconds < 0 or s.company_delay_seconds < 0:
        raise ConfigError("Delay settings cannot be negative.")
    if s.renderer not in RENDERERS:
        raise ConfigError(f"Unknown renderer {s.renderer!r}; expected one of {RENDERERS}.")
    if s.navigation_timeout_ms <= 0 or s.settle_ms < 0:
        raise ConfigError("'navigation_timeout_ms' must be > 0 and 'settle_ms' >= 0.")
    if s.description_max_chars < 0:
        raise ConfigError("'description_max_chars' cannot be negative.")
