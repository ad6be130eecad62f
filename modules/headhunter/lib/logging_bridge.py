from __future__ import annotations

import logging
from typing import Any

# Prefer the service JSONL writer; default to stdlib logging when it is absent.
# No prints; this module should be silent on import.
_logging_backend = None
try:
    from service import logging_utils as _svc_logging  # type: ignore

    _logging_backend = _svc_logging
except ImportError:
    _logging_backend = None

# Keys whose values never reach a log line
_REDACT_KEYS = {
    "api_key",
    "apikey",
    "brave_api_key",
    "token",
    "subscription_token",
    "x-subscription-token",
    "secret",
    "password",
    "authorization",
}


def _redact_record(record: dict[str, Any]) -> dict[str, Any]:
    """
    Shallow-copy record and redact secret-like fields at top level.
    """
    redacted = dict(record)
    for k in list(redacted.keys()):
        lk = str(k).lower()
        if lk in _REDACT_KEYS or lk.endswith("_secret") or lk.endswith("_token"):
            redacted[k] = "***REDACTED***"
    return redacted


def activity(record: dict[str, Any]) -> None:
    """
    Write an activity record through the service writer if available,
    otherwise as a structured stdlib info line.
    """
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_activity_log(payload)
            return
        except OSError:
            logging.getLogger("headhunter.activity").debug("activity log write failed", exc_info=True)
    logging.getLogger("headhunter.activity").info(payload)


def error(record: dict[str, Any]) -> None:
    """
    Write an error record through the service writer if available,
    otherwise as a structured stdlib error line.
    """
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_error_log(payload)
            return
        except OSError:
            logging.getLogger("headhunter.error").debug("error log write failed", exc_info=True)
    logging.getLogger("headhunter.error").error(payload)


def warning(record: dict[str, Any]) -> None:
    """Recoverable problems: written to the error log with level=warning."""
    error({**record, "level": "warning"})
