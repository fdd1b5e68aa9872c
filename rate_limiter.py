from functools import wraps
from quart import request, jsonify
import time
from collections import defaultdict
from typing import Dict, List
import threading

from config import load_settings


class RateLimiter:
    def __init__(self, window_size: int = 60, max_requests: int = 10, clock=time.time):
        self.window_size = window_size  # Window size in seconds
        self.max_requests = max_requests
        self.clock = clock
        self.requests: Dict[str, List[float]] = defaultdict(list)
        self.lock = threading.Lock()

    def is_rate_limited(self, client: str) -> bool:
        """Record a request from client and report whether it is over the limit."""
        now = self.clock()
        with self.lock:
            recent = [
                req_time for req_time in self.requests[client]
                if now - req_time <= self.window_size
            ]
            recent.append(now)
            self.requests[client] = recent
            return len(recent) > self.max_requests

    def reset(self):
        with self.lock:
            self.requests.clear()


def _from_settings() -> RateLimiter:
    settings = load_settings()
    return RateLimiter(settings.rate_limit_window, settings.rate_limit_max_requests)


rate_limiter = _from_settings()


def client_address() -> str:
    return request.headers.get('CF-Connecting-IP', request.remote_addr) or 'unknown'


def rate_limit(func):
    @wraps(func)
    async def decorated_function(*args, **kwargs):
        if rate_limiter.is_rate_limited(client_address()):
            return jsonify({
                "error": "Rate limit exceeded. Please try again later.",
                "limit": rate_limiter.max_requests,
                "window_size": f"{rate_limiter.window_size} seconds"
            }), 429

        return await func(*args, **kwargs)

    return decorated_function
