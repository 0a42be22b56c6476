"""Per-endpoint rate limiting"""

import asyncio
import time
from collections import defaultdict
from functools import wraps
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request, status


class EndpointRateLimiter:
    """In-memory fixed-window limiter keyed by (client IP, path)"""

    def __init__(self):
        # "ip:path" -> (request count, window start)
        self.requests: Dict[str, Tuple[int, float]] = defaultdict(lambda: (0, time.time()))
        self.lock = asyncio.Lock()

    async def check_limit(self, ip: str, endpoint: str, max_requests: int, window: int) -> bool:
        async with self.lock:
            key = f"{ip}:{endpoint}"
            current_time = time.time()
            count, start_time = self.requests[key]

            if current_time - start_time > window:
                self.requests[key] = (1, current_time)
                return True

            if count >= max_requests:
                return False

            self.requests[key] = (count + 1, start_time)
            return True

    async def cleanup(self, max_age: int = 3600):
        """Drop windows that started more than max_age seconds ago"""
        async with self.lock:
            current_time = time.time()
            expired = [
                key for key, (_, start_time) in self.requests.items()
                if current_time - start_time > max_age
            ]
            for key in expired:
                del self.requests[key]

    def reset(self):
        self.requests.clear()


endpoint_limiter = EndpointRateLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit(max_requests: int = 10, window: int = 60):
    """
    Endpoint rate limit decorator

    The decorated endpoint must accept a ``request: Request`` argument.

    Args:
        max_requests: requests allowed per window
        window: window length in seconds

    Example:
        @router.post("/login")
        @rate_limit(max_requests=10, window=60)
        async def login(request: Request, ...):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            if request is None:
                for arg in args:
                    if isinstance(arg, Request):
                        request = arg
                        break

            if request is not None:
                allowed = await endpoint_limiter.check_limit(
                    client_ip(request),
                    request.url.path,
                    max_requests,
                    window,
                )
                if not allowed:
                    raise HTTPException(
                        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                        detail=f"Too many requests, try again in {window} seconds",
                    )

            return await func(*args, **kwargs)
        return wrapper
    return decorator


async def cleanup_task(interval: int = 300):
    """Periodically purge stale limiter windows"""
    while True:
        await asyncio.sleep(interval)
        await endpoint_limiter.cleanup()
