"""
Timeout and retry combinators for async operations.

Both are independent of workflow semantics. The engine composes them as
``with_retries(lambda: with_timeout(call(), budget))`` so every retry gets a
fresh timeout budget.

``with_timeout`` is cooperative: an operation that overruns its budget is
abandoned, not cancelled. It keeps running in the background and any side
effects it has (a file written late, say) still happen after the caller has
been told it timed out.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..observability.logging import get_logger
from .exceptions import ChimeraError, StageTimeoutError

logger = get_logger(__name__)

T = TypeVar("T")

# Strong references to abandoned operations so they are not garbage collected mid-flight
_abandoned: set[asyncio.Future] = set()


def as_error(value: Any) -> Exception:
    """Normalize any failure value into an exception carrying a message."""
    if isinstance(value, Exception):
        return value
    if isinstance(value, BaseException):
        return ChimeraError(str(value) or type(value).__name__)
    if value is None:
        return ChimeraError("unknown error")
    return ChimeraError(str(value))


def _abandon(task: asyncio.Future) -> None:
    _abandoned.add(task)
    task.add_done_callback(_consume_late_outcome)


def _consume_late_outcome(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned operation failed after timeout: {exc}")
    else:
        logger.debug("Abandoned operation completed after timeout")


async def with_timeout(operation: Awaitable[T], timeout: float = 60.0) -> T:
    """
    Await ``operation`` for at most ``timeout`` seconds.

    Cancelling the caller abandons ``operation`` the same way a timeout does.

    Raises:
        StageTimeoutError: if ``operation`` has not settled in time. The
            operation is left running and its eventual outcome is ignored.
    """
    task = asyncio.ensure_future(operation)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        _abandon(task)
        raise
    if task in done:
        return task.result()

    _abandon(task)
    raise StageTimeoutError("timeout")


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        f"Attempt {retry_state.attempt_number} failed: {exc}; retrying in {delay:.3f}s",
        op="with_retries",
        attempt=retry_state.attempt_number,
    )


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 0.25,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Call ``operation`` until it succeeds, at most ``max_retries + 1`` times.

    The first attempt runs immediately; retry ``n`` waits
    ``base_delay * 2 ** (n - 1)`` seconds first (0.25, 0.5, 1.0 with the
    defaults). The last error is re-raised when every attempt fails.
    Throwables that are not ``Exception`` subclasses (other than cancellation
    and interpreter exits) are normalized with :func:`as_error` first.
    """
    if max_retries < 0:
        raise ValueError("max_retries must be >= 0")

    async def attempt() -> T:
        try:
            return await operation()
        except Exception:
            raise
        except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
            raise
        except BaseException as e:
            raise as_error(e) from e

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(attempt)
