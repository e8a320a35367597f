import time
from collections.abc import Callable
from typing import Any

from fastapi import Request


class TTLCache:
    """In-process key/value store where every entry expires after its own TTL.

    Expired entries are evicted when read, and every ``default_ttl`` seconds a
    write also drops all expired entries so keys that are never read again do
    not pile up. ``timer`` must be monotonic; tests pass a fake one to simulate
    elapsed time.
    """

    def __init__(
        self, default_ttl: float = 300, timer: Callable[[], float] = time.monotonic
    ) -> None:
        self.default_ttl = default_ttl
        self._timer = timer
        self._entries: dict[str, tuple[Any, float]] = {}
        self._next_sweep = timer() + default_ttl

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._timer() > expires_at:
            del self._entries[key]
            return None
        return value

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        self._entries = {k: e for k, e in self._entries.items() if now <= e[1]}
        self._next_sweep = now + self.default_ttl

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        now = self._timer()
        self._sweep(now)
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, now + ttl)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache
