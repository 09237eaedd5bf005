"""
In-memory TTL cache for report store documents.

Tenant documents read from disk are cached by path and modification time,
so a report request does not re-parse unchanged files. The report engine
itself never caches: question maps and scores are rebuilt per call.
"""

import hashlib
import threading
from functools import wraps
from typing import Any, Callable, Optional, TypeVar
from cachetools import TTLCache

from config import settings

# Type variable for generic cache functions
T = TypeVar('T')

# Global cache instances with thread-safe access
_cache_lock = threading.Lock()
_caches: dict = {}


def get_cache(
    name: str,
    maxsize: Optional[int] = None,
    ttl: Optional[int] = None,
) -> TTLCache:
    """
    Get or create a named cache instance.

    Args:
        name: Cache namespace (e.g., "tenant_documents")
        maxsize: Maximum number of items (settings.cache_max_size if None)
        ttl: Time-to-live in seconds (settings.cache_ttl_seconds if None)

    Returns:
        TTLCache instance for the namespace
    """
    with _cache_lock:
        if name not in _caches:
            _caches[name] = TTLCache(
                maxsize=maxsize or settings.cache_max_size,
                ttl=ttl or settings.cache_ttl_seconds,
            )
        return _caches[name]


def make_cache_key(*args, **kwargs) -> str:
    """
    Create a deterministic cache key from arguments.

    Returns:
        MD5 hex digest of the joined argument reprs
    """
    sorted_kwargs = sorted(kwargs.items())
    key_parts = [repr(arg) for arg in args] + [f"{k}={v!r}" for k, v in sorted_kwargs]
    key_string = "|".join(key_parts)

    # Not cryptographic, only for key uniqueness
    return hashlib.md5(key_string.encode()).hexdigest()


def cache_result(cache_name: str, ttl: Optional[int] = None) -> Callable:
    """
    Decorator caching the return value of a plain function.

    Arguments must have stable reprs (strings, numbers, tuples).

    Example:
        @cache_result("tenant_documents")
        def load_document(path: str, mtime: float) -> dict:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            cache = get_cache(cache_name, ttl=ttl)
            cache_key = make_cache_key(*args, **kwargs)

            with _cache_lock:
                if cache_key in cache:
                    return cache[cache_key]

            result = func(*args, **kwargs)

            with _cache_lock:
                cache[cache_key] = result

            return result

        return wrapper

    return decorator


def clear_cache(cache_name: Optional[str] = None) -> None:
    """
    Clear cache contents.

    Args:
        cache_name: Specific cache to clear, or None to clear all
    """
    with _cache_lock:
        if cache_name:
            if cache_name in _caches:
                _caches[cache_name].clear()
        else:
            for cache in _caches.values():
                cache.clear()


def get_cache_stats(cache_name: str) -> dict:
    """
    Get cache statistics.

    Returns:
        Dict with size, maxsize and ttl, or {"exists": False}
    """
    with _cache_lock:
        if cache_name not in _caches:
            return {"exists": False}

        cache: Any = _caches[cache_name]
        return {
            "exists": True,
            "size": len(cache),
            "maxsize": cache.maxsize,
            "ttl": cache.ttl,
        }
