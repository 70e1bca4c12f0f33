from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_in: int


class FixedWindowRateLimiter:
    """In-process fixed-window counter keyed by client address."""

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_requests = max(1, int(max_requests))
        self.window_seconds = max(1, int(window_seconds))
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> RateDecision:
        async with self._lock:
            now = self._clock()
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            if len(self._windows) > 10_000:
                self._evict(now)
        reset_in = max(0, math.ceil(started + self.window_seconds - now))
        return RateDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_in=reset_in,
        )

    def _evict(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            self._windows.pop(k, None)


def _client_key(request: Request) -> str:
    # Proxy headers are resolved into request.client by the server (forwarded_allow_ips).
    return request.client.host if request.client else "unknown"


def install_rate_limiter(app: FastAPI, limiter: FixedWindowRateLimiter, prefix: str = "/api") -> None:
    """Count every request under `prefix` and reject those over the window budget with 429."""

    @app.middleware("http")
    async def _rate_limit(request: Request, call_next):
        if not request.url.path.startswith(prefix):
            return await call_next(request)

        decision = await limiter.hit(_client_key(request))
        headers = {
            "RateLimit-Limit": str(decision.limit),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(decision.reset_in),
        }
        if not decision.allowed:
            log.warning(f"rate limit exceeded for {_client_key(request)} on {request.url.path}")
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests, please try again later", "code": "RATE_LIMIT_EXCEEDED"},
                headers=headers,
            )
        response = await call_next(request)
        response.headers.update(headers)
        return response
