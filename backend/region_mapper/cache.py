"""In-memory TTL cache for Azure metadata calls.

Catalog importers may fetch regions from worker threads, so entries live in a
lock-guarded store. The wrapped call runs outside the lock; two threads missing
the same key both fetch and the last write wins.

``CACHE_TTL_SECONDS`` in the environment overrides every per-function TTL.
"""
from __future__ import annotations

import logging
import os
import threading
import time
from functools import wraps
from typing import Any, Callable, Dict, Hashable, Optional, Tuple, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600

_MISSING = object()


class _Store:
    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, Hashable], Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, owner: str, key: Hashable) -> Any:
        with self._lock:
            entry = self._entries.get((owner, key))
            if entry is None:
                return _MISSING
            expires_at, value = entry
            if expires_at <= time.monotonic():
                del self._entries[(owner, key)]
                return _MISSING
            return value

    def put(self, owner: str, key: Hashable, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[(owner, key)] = (time.monotonic() + ttl, value)

    def drop(self, owner: str) -> None:
        with self._lock:
            for k in [k for k in self._entries if k[0] == owner]:
                del self._entries[k]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_store = _Store()


def effective_ttl(default: Optional[int]) -> int:
    raw = os.getenv("CACHE_TTL_SECONDS")
    if raw:
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric CACHE_TTL_SECONDS=%r", raw)
    return DEFAULT_TTL_SECONDS if default is None else default


def ttl_cache(ttl_seconds: int | None = None):
    """Memoize a function on its positional args and sorted kwargs.

    The TTL is resolved on every store, so ``CACHE_TTL_SECONDS`` applies without
    re-importing the decorated module.
    """

    def wrapper(fn: Callable[..., T]) -> Callable[..., T]:
        owner = f"{fn.__module__}.{fn.__qualname__}"

        @wraps(fn)
        def inner(*args, **kwargs):  # type: ignore
            key = (args, tuple(sorted(kwargs.items())))
            value = _store.get(owner, key)
            if value is _MISSING:
                value = fn(*args, **kwargs)
                _store.put(owner, key, value, effective_ttl(ttl_seconds))
            return value

        inner.invalidate = lambda: _store.drop(owner)  # type: ignore[attr-defined]
        return inner

    return wrapper


def clear_all_cache() -> None:
    _store.clear()
