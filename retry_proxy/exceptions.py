"""
Retry Proxy Exceptions
======================
Errors raised by the library itself. Operation errors are never wrapped.
"""


class RetryProxyError(Exception):
    """Base exception for retry proxy errors."""
    pass


class InvalidRetryPolicy(RetryProxyError, ValueError):
    """Raised when a retry policy is built from invalid values."""

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class InvalidObserver(RetryProxyError, ValueError):
    """Raised when an observer binding cannot emit at its severity."""
    pass
