"""
Fixed-window request throttling backed by the Django cache framework.

The counter store is whatever ``CACHES['default']`` points at: local memory
for a single process, Redis when several web processes share the limits.
"""
import logging
from functools import wraps

from django.core.cache import cache
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def get_client_identifier(request):
    """Client IP (first hop behind a proxy) plus a user-agent prefix"""
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    ip = forwarded.split(",")[0].strip() or request.META.get("HTTP_X_REAL_IP") or request.META.get("REMOTE_ADDR") or "unknown"
    user_agent = request.META.get("HTTP_USER_AGENT", "unknown")[:50]
    return f"{ip}:{user_agent}"


def hit(key, max_requests, window_seconds, store=None):
    """
    Count one request against ``key``.
    Returns (allowed, remaining).
    """
    store = store or cache
    cache_key = f"ratelimit:{key}"

    # add() only succeeds for the first request of a window
    if store.add(cache_key, 1, window_seconds):
        count = 1
    else:
        try:
            count = store.incr(cache_key)
        except ValueError:
            # window expired between add() and incr()
            store.set(cache_key, 1, window_seconds)
            count = 1

    allowed = count <= max_requests
    return allowed, max(0, max_requests - count)


def rate_limit(scope, max_requests, window_seconds):
    """View decorator returning 429 once a client exceeds the window budget"""
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            identifier = f"{scope}:{get_client_identifier(request)}"
            allowed, remaining = hit(identifier, max_requests, window_seconds)
            if not allowed:
                logger.warning(f"Rate limit exceeded for {scope}")
                response = JsonResponse(
                    {"success": False, "error": "Too many requests. Please try again later."},
                    status=429,
                )
                response["Retry-After"] = str(window_seconds)
                return response
            response = view_func(request, *args, **kwargs)
            response["X-RateLimit-Remaining"] = str(remaining)
            return response
        return _wrapped
    return decorator
