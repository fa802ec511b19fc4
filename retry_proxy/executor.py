"""
Retry Executor
==============
Re-invokes a fallible operation with multiplicative backoff between attempts.

Usage:
    from retry_proxy import ObserverBinding, RetryProxy

    proxy = RetryProxy(observer=ObserverBinding.for_logger(logger, "warning"))
    user = await proxy.execute(client.get_user, ["user_123"], max_retries=2)

    # Target, callback and level: callback(level, message)
    proxy = RetryProxy(sink, lambda level, message: sink.write(level, message), "warn")

    # An unbound method of the target's class receives the target as self
    proxy = RetryProxy(sink, AuditSink.record, "warn")

    # Receiver-binding form
    user = await proxy.call_api(client, Client.get_user, ["user_123"])
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar

import structlog

from .config import OBSERVATION_TEMPLATE
from .models import AttemptState, ObserverBinding, RetryPolicy, bind_callable

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _describe_error(error: BaseException) -> str:
    return str(error) or type(error).__name__


class RetryProxy:
    """
    Retry executor with optional failure observer.

    The observer is installed only when ``log_object``, ``log_func`` and
    ``log_level`` are all given, or when a complete ``observer`` binding is
    passed. Anything less installs nothing. The callback is called as
    ``log_func(log_level, message)``; an unbound method declared on
    ``log_object``'s class is bound to it first.
    """

    def __init__(
        self,
        log_object: Any = None,
        log_func: Optional[Callable[..., Any]] = None,
        log_level: Optional[str] = None,
        *,
        observer: Optional[ObserverBinding] = None,
        default_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.observer = observer or ObserverBinding.from_parts(log_object, log_func, log_level)
        self.default_policy = default_policy or RetryPolicy()
        self._sleep = sleep

    def _policy(self, max_retries: Optional[int], initial_interval_ms: Optional[float]) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.default_policy.max_retries if max_retries is None else max_retries,
            initial_interval_ms=(
                self.default_policy.initial_interval_ms
                if initial_interval_ms is None
                else initial_interval_ms
            ),
        )

    def _observe(self, retries_left: int, error: BaseException) -> None:
        if self.observer is None:
            return
        self.observer.emit(
            OBSERVATION_TEMPLATE.format(retries_left=retries_left, error=_describe_error(error))
        )

    async def execute(
        self,
        operation: Callable[..., Any],
        args: Optional[Sequence[Any]] = (None,),
        max_retries: Optional[int] = None,
        initial_interval_ms: Optional[float] = None,
        *,
        kwargs: Optional[Mapping[str, Any]] = None,
    ) -> T:
        """
        Run ``operation(*args, **kwargs)`` until it succeeds or retries run out.

        Args:
            operation: Callable returning a value or an awaitable
            args: Positional arguments (``None`` means a single ``None``)
            max_retries: Retries after the first attempt (default 3)
            initial_interval_ms: Wait before the first retry (default 500)
            kwargs: Keyword arguments for the operation

        Returns:
            The operation's result

        Raises:
            The operation's own exception from the last attempt, unchanged.
            InvalidRetryPolicy: If the retry values are invalid.
            TypeError: If ``args`` is not iterable.

        Any awaitable result is awaited, whether it comes from a coroutine
        function or from a plain callable returning a Future or Task, and a
        failure of that await counts as a failed attempt. A sync callable
        whose value is itself meant to be an awaitable must be wrapped so it
        returns something else.
        """
        policy = self._policy(max_retries, initial_interval_ms)
        state = AttemptState.start(policy)
        op_name = getattr(operation, "__qualname__", repr(operation))
        args = (None,) if args is None else tuple(args)
        kwargs = dict(kwargs or {})

        while True:
            state.begin_attempt()
            try:
                result = operation(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                state.fail()
                self._observe(state.retries_remaining, e)

                if state.exhausted:
                    logger.warning(
                        "Retry exhausted",
                        func=op_name,
                        attempts=state.attempts,
                        error=_describe_error(e),
                    )
                    raise

                logger.debug(
                    "Retrying after failure",
                    func=op_name,
                    attempt=state.attempts,
                    retries_left=state.retries_remaining,
                    delay_ms=state.interval_ms,
                    error=_describe_error(e),
                )
                await self._sleep(state.interval_ms / 1000)
                state.advance()
                continue

            state.succeed()
            if state.attempts > 1:
                logger.info(
                    "Succeeded after retry",
                    func=op_name,
                    attempts=state.attempts,
                    delays_ms=state.delays_ms,
                )
            return result

    async def call_api(
        self,
        api_object: Any,
        func: Callable[..., Any],
        params: Optional[Sequence[Any]] = (None,),
        retries: Optional[int] = None,
        retry_interval: Optional[float] = None,
    ) -> T:
        """
        Call ``func`` on ``api_object`` with retries.

        ``func`` is bound to ``api_object`` first, so an unbound method such
        as ``Client.get_user`` runs with the client as ``self``. Other
        callables are called as they are. ``params=None`` means a single
        ``None`` argument.
        """
        bound = bind_callable(api_object, func)
        return await self.execute(bound, params, retries, retry_interval)
