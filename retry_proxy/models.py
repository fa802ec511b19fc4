"""
Retry Proxy Models
==================
Policy, observer binding and per-sequence attempt state.
"""

import inspect
import math
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Iterator, List, Optional

from .config import (
    BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_INTERVAL_MS,
    DEFAULT_MAX_RETRIES,
)
from .exceptions import InvalidObserver, InvalidRetryPolicy


def bind_callable(target: Any, func: Callable) -> Callable:
    """
    Attach a method to a receiver object.

    Unbound methods declared on the target's class (e.g. ``Client.fetch``
    or ``dict.get``) are bound so that ``target`` becomes ``self``. Any other
    callable (bound methods, lambdas, free functions, partials) already
    carries its context and is returned unchanged.
    """
    if inspect.ismethod(func):
        return func
    if inspect.isfunction(func) or inspect.ismethoddescriptor(func):
        name = getattr(func, "__name__", None)
        if name and inspect.getattr_static(type(target), name, None) is func:
            return func.__get__(target, type(target))
    return func


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry budget and initial backoff for one retry sequence."""
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_interval_ms: float = DEFAULT_INITIAL_INTERVAL_MS

    BACKOFF_MULTIPLIER = BACKOFF_MULTIPLIER

    def __post_init__(self):
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise InvalidRetryPolicy("max_retries", self.max_retries, "must be an integer")
        if self.max_retries < 0:
            raise InvalidRetryPolicy("max_retries", self.max_retries, "must be >= 0")

        interval = self.initial_interval_ms
        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            raise InvalidRetryPolicy("initial_interval_ms", interval, "must be a number")
        if not math.isfinite(interval) or interval < 0:
            raise InvalidRetryPolicy("initial_interval_ms", interval, "must be finite and >= 0")

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    def intervals(self) -> Iterator[float]:
        """Yield the wait (ms) before each retry, in order."""
        interval = self.initial_interval_ms
        for _ in range(self.max_retries):
            yield interval
            interval *= self.BACKOFF_MULTIPLIER


def _log_at_severity(logger: Any, severity: str, message: str) -> None:
    getattr(logger, severity.lower())(message)


@dataclass(frozen=True)
class ObserverBinding:
    """
    Observer notified of every failed attempt.

    Holds the log target, the callback and the severity tag together so an
    observer is either fully configured or absent.
    """
    target: Any
    callback: Callable[..., Any]
    severity: str

    @classmethod
    def from_parts(
        cls,
        target: Any = None,
        callback: Optional[Callable[..., Any]] = None,
        severity: Optional[str] = None,
    ) -> Optional["ObserverBinding"]:
        """Build a binding only when all three parts are supplied."""
        if target is not None and callback is not None and severity:
            return cls(target=target, callback=callback, severity=severity)
        return None

    @classmethod
    def for_logger(cls, logger: Any, severity: str = "warning") -> "ObserverBinding":
        """
        Observe through a logger's level methods.

        Works with ``logging.Logger`` and structlog loggers, e.g.
        ``ObserverBinding.for_logger(structlog.get_logger(), "error")``.

        Raises:
            InvalidObserver: If the logger has no method for ``severity``.
        """
        if not callable(getattr(logger, str(severity).lower(), None)):
            raise InvalidObserver(f"{type(logger).__name__} has no {severity!r} log method")
        return cls(target=logger, callback=partial(_log_at_severity, logger), severity=severity)

    def emit(self, message: str) -> None:
        """Call ``callback(severity, message)``; class methods of the target get it as ``self``."""
        bind_callable(self.target, self.callback)(self.severity, message)


class AttemptPhase(str, Enum):
    """Lifecycle of one retry sequence."""
    READY = "ready"
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"                # Terminal
    FAILED_EXHAUSTED = "failed_exhausted"  # Terminal


@dataclass
class AttemptState:
    """Transient state of one retry sequence. Never shared."""
    retries_remaining: int
    interval_ms: float
    attempts: int = 0
    phase: AttemptPhase = AttemptPhase.READY
    delays_ms: List[float] = field(default_factory=list)

    @classmethod
    def start(cls, policy: RetryPolicy) -> "AttemptState":
        return cls(
            retries_remaining=policy.max_retries,
            interval_ms=policy.initial_interval_ms,
        )

    @property
    def exhausted(self) -> bool:
        return self.retries_remaining == 0

    def begin_attempt(self) -> None:
        self.attempts += 1
        self.phase = AttemptPhase.ATTEMPTING

    def succeed(self) -> None:
        self.phase = AttemptPhase.SUCCEEDED

    def fail(self) -> None:
        """Record a failed attempt; moves to WAITING or FAILED_EXHAUSTED."""
        if self.exhausted:
            self.phase = AttemptPhase.FAILED_EXHAUSTED
        else:
            self.phase = AttemptPhase.WAITING

    def advance(self) -> None:
        """Consume one retry and grow the interval after a wait."""
        self.delays_ms.append(self.interval_ms)
        self.retries_remaining -= 1
        self.interval_ms *= RetryPolicy.BACKOFF_MULTIPLIER
