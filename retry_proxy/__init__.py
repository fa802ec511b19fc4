"""
Retry Proxy
===========
Retry-with-backoff wrapper for fallible async operations.
"""

__version__ = "0.1.0"

from .exceptions import RetryProxyError, InvalidRetryPolicy, InvalidObserver
from .models import (
    RetryPolicy,
    ObserverBinding,
    AttemptPhase,
    AttemptState,
    bind_callable,
)
from .executor import RetryProxy
from .decorators import with_retry

__all__ = [
    # Exceptions
    "RetryProxyError",
    "InvalidRetryPolicy",
    "InvalidObserver",
    # Models
    "RetryPolicy",
    "ObserverBinding",
    "AttemptPhase",
    "AttemptState",
    "bind_callable",
    # Executor
    "RetryProxy",
    # Decorator
    "with_retry",
]
