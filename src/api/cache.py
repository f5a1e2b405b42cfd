"""
Query cache for list reads.

Screens re-read the same lists (products, customers, sellers) many times;
entries live for CACHE_TTL_SECONDS and are dropped by prefix whenever a
mutation touches the resource.
"""
import time
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Tuple

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

# key -> (stored_at, value)
_entries: Dict[str, Tuple[float, Any]] = {}


def make_cache_key(prefix: str, *args, **kwargs) -> str:
    if not args and not kwargs:
        return prefix
    return f"{prefix}:{args}:{sorted(kwargs.items())}"


def get(key: str) -> Any:
    entry = _entries.get(key)
    if entry is None:
        return None
    stored_at, value = entry
    if time.monotonic() - stored_at > settings.CACHE_TTL_SECONDS:
        del _entries[key]
        return None
    return value


def put(key: str, value: Any) -> None:
    _entries[key] = (time.monotonic(), value)


def invalidate(*prefixes: str) -> None:
    """Drop every key equal to, or starting with ``prefix:``, any given prefix."""
    for key in list(_entries):
        for prefix in prefixes:
            if key == prefix or key.startswith(prefix + ":"):
                del _entries[key]
                _logger.debug(f"Cache invalidated: {key}")
                break


def clear() -> None:
    _entries.clear()


def cached_query(key_prefix: str):
    """
    Cache the result of an async read under ``key_prefix``.

    The wrapped function accepts ``refresh=True`` to bypass and refill the
    cache, used wherever the latest server state matters (stock checks).
    """

    def decorator(func: Callable[..., Awaitable[Any]]):
        @wraps(func)
        async def wrapper(*args, refresh: bool = False, **kwargs):
            key = make_cache_key(key_prefix, *args, **kwargs)
            if not refresh:
                hit = get(key)
                if hit is not None:
                    _logger.debug(f"Cache HIT for {key}")
                    return hit
            _logger.debug(f"Cache MISS for {key}")
            result = await func(*args, **kwargs)
            put(key, result)
            return result

        return wrapper

    return decorator
