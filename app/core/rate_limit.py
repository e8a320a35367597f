import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import HTTPException, Request, Response, status

from app.core.security import get_client_ip


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int


class RateLimiter:
    """Fixed-window request counter keyed by client identity.

    Windows that have ended are dropped at most once per ``window_seconds``,
    on the next hit from any client.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60,
        timer: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._timer = timer
        self._windows: dict[str, RateLimitWindow] = {}
        self._next_sweep = timer() + window_seconds

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        self._windows = {k: w for k, w in self._windows.items() if now <= w.reset_at}
        self._next_sweep = now + self.window_seconds

    def hit(self, key: str) -> RateLimitResult:
        now = self._timer()
        self._sweep(now)
        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            window = RateLimitWindow(count=0, reset_at=now + self.window_seconds)
            self._windows[key] = window

        window.count += 1
        return RateLimitResult(
            allowed=window.count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - window.count),
            reset_at=window.reset_at,
            retry_after=math.ceil(window.reset_at - now),
        )

    def reset(self) -> None:
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def rate_limit(request: Request, response: Response) -> None:
    """Router dependency enforcing the per-IP request budget."""
    limiter = get_rate_limiter(request)
    result = limiter.hit(get_client_ip(request) or "unknown")

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(result.reset_at)),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers=headers,
        )

    response.headers.update(headers)
