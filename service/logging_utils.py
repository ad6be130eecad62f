# service/logging_utils.py
from __future__ import annotations

import contextlib
import datetime as _dt
import json
import os
import socket
from collections.abc import Iterable
from typing import Any

# Environment is read on every call so tests can point LOG_DIR at a tmp dir.
_DEFAULT_LOG_DIR = "/app/local/logs"

_DEFAULT_REDACT_KEYS = {
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
}

_HOSTNAME = socket.gethostname()
_PID = os.getpid()


# ---- Public API --------------------------------------------------------------


def write_activity_log(record: dict[str, Any]) -> None:
    """
    Append one structured activity record as a JSON line.
    Never mutates the passed-in dict. May raise OSError on I/O failure.
    """
    _write_jsonl(log_path_for_today(os.getenv("ACTIVITY_LOG_PREFIX", "activity")), record)


def write_error_log(record: dict[str, Any]) -> None:
    """Append one structured error record, parallel to the activity log."""
    _write_jsonl(log_path_for_today(os.getenv("ERROR_LOG_PREFIX", "error")), record)


def log_path_for_today(prefix: str) -> str:
    """Return today's log path: $LOG_DIR/<prefix>-YYYY-MM-DD.jsonl"""
    today = _dt.date.today().isoformat()
    return os.path.join(os.getenv("LOG_DIR", _DEFAULT_LOG_DIR), f"{prefix}-{today}.jsonl")


def redact(record: dict[str, Any], keys: Iterable[str] | None = None) -> dict[str, Any]:
    """
    Deep copy of `record` with values scrubbed wherever the KEY contains one of
    the substrings in `keys` (case-insensitive).
    """
    return _redact_deep(record, tuple(keys or _DEFAULT_REDACT_KEYS))


# ---- Internal helpers --------------------------------------------------------


def _max_bytes() -> int:
    try:
        return int(os.getenv("ACTIVITY_LOG_MAX_BYTES", "0"))
    except ValueError:
        return 0


def _rotate_file_if_needed(path: str) -> None:
    limit = _max_bytes()
    if limit <= 0:
        return
    try:
        size = os.path.getsize(path)
    except FileNotFoundError:
        return
    if size < limit:
        return
    ts = _dt.datetime.now().strftime("%Y%m%d-%H%M%S")
    with contextlib.suppress(FileNotFoundError):
        os.replace(path, f"{path}.{ts}")


def _redact_deep(value: Any, patterns: tuple[str, ...]) -> Any:
    if isinstance(value, dict):
        out: dict[Any, Any] = {}
        for k, v in value.items():
            if isinstance(k, str) and any(p in k.lower() for p in patterns):
                out[k] = "***REDACTED***"
            else:
                out[k] = _redact_deep(v, patterns)
        return out
    if isinstance(value, (list, tuple)):
        return [_redact_deep(v, patterns) for v in value]
    return value


def _write_jsonl(path: str, record: dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    _rotate_file_if_needed(path)

    payload = redact(record)
    payload["_meta"] = {"host": _HOSTNAME, "pid": _PID, "ts": _dt.datetime.now(_dt.timezone.utc).isoformat()}

    # default=str keeps enums/dates from breaking a log line
    data = (json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")

    # O_APPEND makes the single write atomic on POSIX
    fd = os.open(path, os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
    try:
        os.write(fd, data)
    finally:
        os.close(fd)
