"""Short-lived cache of task detail views.

Entries are dropped whenever a claim changes the task, so readers see the
new version on their next fetch instead of waiting out the TTL.
"""

from __future__ import annotations

import threading
import time

from taskforperks.config import settings


class TTLCache:
    def __init__(self, default_ttl_s: int) -> None:
        self.default_ttl_s = max(1, int(default_ttl_s))
        self._data: dict[str, tuple[float, object]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> object | None:
        now = time.monotonic()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                self._data.pop(key, None)
                return None
            return value

    def set(self, key: str, value: object, ttl_s: int | None = None) -> None:
        ttl_value = self.default_ttl_s if ttl_s is None else max(1, int(ttl_s))
        expires_at = time.monotonic() + ttl_value
        with self._lock:
            self._data[key] = (expires_at, value)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


task_views = TTLCache(default_ttl_s=settings.task_view_cache_ttl_seconds)


def invalidate_task_view(task_id: str) -> None:
    task_views.delete(task_id)
