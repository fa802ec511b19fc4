"""
Retry Decorator
===============
Decorator for wrapping async functions with retry and backoff.
"""

from functools import wraps
from typing import Awaitable, Callable, Optional, TypeVar

from .executor import RetryProxy
from .models import ObserverBinding

T = TypeVar("T")


def with_retry(
    max_retries: Optional[int] = None,
    initial_interval_ms: Optional[float] = None,
    observer: Optional[ObserverBinding] = None,
):
    """
    Decorator for retry with multiplicative backoff.

    Usage:
        @with_retry(max_retries=5, initial_interval_ms=200)
        async def fetch_data(account_id: str):
            ...
    """
    proxy = RetryProxy(observer=observer)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await proxy.execute(
                func,
                args,
                max_retries,
                initial_interval_ms,
                kwargs=kwargs,
            )
        return wrapper
    return decorator
