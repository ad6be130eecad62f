from __future__ import annotations

from typing import Any

from .lib.config import Settings
from .lib.engine import run_once as _run_engine
from .lib.logging_bridge import activity as log_activity
from .lib.models import RunReport


def run(**kwargs: Any) -> RunReport:
    """
    Entry point for the 'headhunter' module.

    Accepts kwargs (from a scheduler/runner), including:
      keyword: str = "AI 工程師"
      location: str = ""
      min_salary: int = 0
      max_results: int = 20
      platforms: list[str] | str = ["104", "1111", "cake"]
      cache_path: str = "/app/local/state/seen_jobs.json"
      enrich_enabled: bool = True
      renderer: "http" | "playwright"
      skip_network: bool = False

    Returns the RunReport; CSV/spreadsheet export and outreach email consume
    report.rows() and report.emailable() downstream.
    """
    settings = Settings.from_env_and_kwargs(kwargs)

    log_activity({
        "component": "headhunter.main",
        "op": "start",
        "keyword": settings.keyword,
        "platforms": settings.platforms,
        "flags": {
            "enrich_enabled": settings.enrich_enabled,
            "search_configured": bool(settings.brave_api_key),
            "renderer": settings.renderer,
            "skip_network": settings.skip_network,
        },
    })

    return _run_engine(settings)
