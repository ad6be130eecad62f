from __future__ import annotations

from .base import BaseScraper

# In-process registry: kind -> adapter class
_REGISTRY: dict[str, type[BaseScraper]] = {}


def register(cls: type[BaseScraper]) -> type[BaseScraper]:
    """
    Class decorator registering a listing adapter under its `kind`.
    Re-registering the same class is a no-op; a different class for a taken kind is rejected.
    """
    kind = getattr(cls, "kind", "") or ""
    if not isinstance(kind, str) or not kind.strip():
        raise ValueError(f"Cannot register adapter {cls!r}: missing/empty 'kind'.")
    key = kind.strip().lower()
    if key in _REGISTRY and _REGISTRY[key] is not cls:
        raise ValueError(f"Adapter kind {key!r} already registered to {_REGISTRY[key]!r}.")
    _REGISTRY[key] = cls
    return cls


def get(kind: str) -> type[BaseScraper]:
    """Case-insensitive lookup. Raises KeyError if not found."""
    key = (kind or "").strip().lower()
    if key not in _REGISTRY:
        raise KeyError(f"No adapter registered for platform {kind!r}.")
    return _REGISTRY[key]


def all_kinds() -> dict[str, type[BaseScraper]]:
    return dict(_REGISTRY)
