import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """Admits at most `max_requests` per key within any `window_seconds` span"""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def hit(self, key: str) -> Tuple[bool, int, float]:
        """Record a request; returns (allowed, remaining, seconds until a slot frees)"""
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)

            hits = self._hits.setdefault(key, deque())
            self._expire(hits, now)

            allowed = len(hits) < self.max_requests
            if allowed:
                hits.append(now)

            remaining = max(0, self.max_requests - len(hits))
            reset = self.window_seconds - (now - hits[0]) if hits else self.window_seconds
            return allowed, remaining, reset

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def _expire(self, hits: Deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        """Forget clients with no request left inside the window"""
        for key in list(self._hits):
            hits = self._hits[key]
            self._expire(hits, now)
            if not hits:
                del self._hits[key]
        self._last_sweep = now


def client_key(request: Request) -> str:
    client = request.client
    if client and client.host:
        return f"ip:{client.host}"
    return "ip:unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window admission control for every route"""

    def __init__(self, app: ASGIApp, limiter: SlidingWindowLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        key = client_key(request)
        allowed, remaining, reset = self.limiter.hit(key)

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key} on {request.url.path}")
            response: Response = JSONResponse(
                status_code=429,
                content={"erro": "Muitas requisições, tente novamente mais tarde"},
            )
            response.headers["Retry-After"] = str(math.ceil(reset))
        else:
            response = await call_next(request)

        response.headers["RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["RateLimit-Remaining"] = str(remaining)
        response.headers["RateLimit-Reset"] = str(math.ceil(reset))
        return response
