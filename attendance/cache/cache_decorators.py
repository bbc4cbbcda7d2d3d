"""
Cache decorators for read-through caching of lookup results.
"""
import hashlib
import json
from functools import wraps
from typing import Callable, Any
from sqlalchemy.ext.asyncio import AsyncSession
from attendance.cache.redis_client import cache
from attendance.core.logging import logger


def cached(key_prefix: str, expire: int = 300):
    """
    Decorator caching an async function's JSON-serialisable result.

    ``None`` results are not cached so that lookups for records created
    later are not masked.

    Usage:
        @cached('users:profile', expire=600)
        async def get_user_profile(db, user_id):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            cache_key = f"{key_prefix}:{_generate_key_from_args(args, kwargs)}"

            cached_value = await cache.get(cache_key)
            if cached_value is not None:
                logger.debug(f"Cache hit for key: {cache_key}")
                return cached_value

            logger.debug(f"Cache miss for key: {cache_key}")
            result = await func(*args, **kwargs)
            if result is not None:
                await cache.set(cache_key, result, expire)
            return result
        return wrapper
    return decorator


def _generate_key_from_args(args: tuple, kwargs: dict) -> str:
    """MD5 of the call arguments, ignoring database sessions."""
    key_data = {
        'args': [str(arg) for arg in args if not isinstance(arg, AsyncSession)],
        'kwargs': {k: str(v) for k, v in kwargs.items() if not isinstance(v, AsyncSession)},
    }
    key_string = json.dumps(key_data, sort_keys=True)
    return hashlib.md5(key_string.encode()).hexdigest()
