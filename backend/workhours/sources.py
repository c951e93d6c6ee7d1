from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from threading import Lock
from typing import Any, Callable, Hashable, Mapping, Protocol, Sequence

from .config import settings
from .timeutil import resolve_timezone

Clock = Callable[[], datetime]


class SwipeSource(Protocol):
    def fetch_swipes(self, day: date) -> Sequence[Any]: ...


class PeriodTotalSource(Protocol):
    def fetch_period_total(self, start: date, end: date) -> Mapping[str, Any]: ...


class AttendanceStatusSource(Protocol):
    def fetch_attendance_status(self, start: date, end: date) -> Mapping[str, Any]: ...


def system_clock(tz: tzinfo | str | None = None) -> Clock:
    zone = resolve_timezone(tz)

    def _now() -> datetime:
        return datetime.now(zone)

    return _now


class TTLCache:
    """Small thread-safe cache with a fixed time-to-live per entry.

    Passed explicitly to the collaborators that use it; nothing is cached at
    module level.
    """

    def __init__(self, ttl_seconds: float | None = None, *, timer: Callable[[], float] = time.monotonic):
        self.ttl_seconds = float(settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds)
        self._timer = timer
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = Lock()

    def get(self, key: Hashable) -> tuple[bool, Any]:
        now = self._timer()
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                return False, None
            stored_at, value = cached
            if (now - stored_at) >= self.ttl_seconds:
                del self._entries[key]
                return False, None
            return True, value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._timer()
            expired = [
                stored_key
                for stored_key, (stored_at, _) in self._entries.items()
                if (now - stored_at) >= self.ttl_seconds
            ]
            for stored_key in expired:
                del self._entries[stored_key]
            self._entries[key] = (now, value)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        hit, value = self.get(key)
        if hit:
            return value
        # Loaded outside the lock; a concurrent miss may load twice.
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CachedSwipeSource:
    """Wraps a swipe source so repeated lookups of past days hit the cache.

    Today's swipes change while the worker is clocked in and are always
    fetched fresh.
    """

    def __init__(self, source: SwipeSource, cache: TTLCache, *, clock: Clock | None = None):
        self._source = source
        self._cache = cache
        self._clock = clock or system_clock()

    def fetch_swipes(self, day: date) -> Sequence[Any]:
        if day >= self._clock().date():
            return self._source.fetch_swipes(day)
        return self._cache.get_or_load(("swipes", day.isoformat()), lambda: self._source.fetch_swipes(day))


class CachedPeriodTotalSource:
    def __init__(self, source: PeriodTotalSource, cache: TTLCache):
        self._source = source
        self._cache = cache

    def fetch_period_total(self, start: date, end: date) -> Mapping[str, Any]:
        key = ("period_total", start.isoformat(), end.isoformat())
        return self._cache.get_or_load(key, lambda: self._source.fetch_period_total(start, end))


@dataclass
class WorklogSources:
    swipes: SwipeSource
    period_totals: PeriodTotalSource
    attendance: AttendanceStatusSource
    clock: Clock
