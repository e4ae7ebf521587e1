"""Fault-tolerance primitives shared by the LLM and speech-to-text call sites."""

import asyncio
import logging
import threading
import time
import typing

from voxinterview.models.schemas.health import CircuitStatus

logger = logging.getLogger(__name__)

T = typing.TypeVar("T")

DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_COOLDOWN_SECONDS = 60.0


class OperationTimeoutError(Exception):
    """Raised when an awaited remote call misses its deadline."""


class RetryExhaustedError(Exception):
    """Raised when every attempt of a bounded retry has failed."""

    def __init__(self, label: str, attempts: int, last_error: BaseException | None):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{label} failed after {attempts} attempt(s): {last_error}")


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker guarding a remote dependency.

    Closed: calls allowed, failures counted. Once ``failure_threshold`` failures
    accumulate the breaker opens for ``cooldown_seconds``; the first availability
    check after the cooldown closes it again and resets the counter.
    """

    def __init__(
        self,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: typing.Callable[[], float] = time.monotonic,
        name: str = "llm",
    ):
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._consecutive_failures = 0
        self._open_until: float | None = None

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def open_until(self) -> float | None:
        return self._open_until

    def is_available(self) -> bool:
        with self._lock:
            if self._open_until is None:
                return True
            if self._clock() >= self._open_until:
                self._consecutive_failures = 0
                self._open_until = None
                logger.info("Circuit breaker '%s' closed after cooldown", self.name)
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            self._consecutive_failures = 0
            self._open_until = None

    def record_failure(self) -> None:
        with self._lock:
            self._consecutive_failures += 1
            if self._consecutive_failures >= self.failure_threshold:
                self._open_until = self._clock() + self.cooldown_seconds
                logger.warning(
                    "Circuit breaker '%s' OPEN after %d consecutive failures (cooldown %.0fs)",
                    self.name,
                    self._consecutive_failures,
                    self.cooldown_seconds,
                )

    def status(self) -> CircuitStatus:
        with self._lock:
            retry_after = None
            if self._open_until is not None:
                retry_after = round(max(0.0, self._open_until - self._clock()), 1)
            return CircuitStatus(
                open=self._open_until is not None,
                failures=self._consecutive_failures,
                retry_after_seconds=retry_after,
            )


async def with_timeout(
    operation: typing.Awaitable[T],
    seconds: float,
    message: str = "Operation timed out",
) -> T:
    """
    Await ``operation`` for at most ``seconds``.

    On expiry the pending operation is cancelled and OperationTimeoutError(message)
    is raised; its eventual result, if any, is discarded.
    """
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise OperationTimeoutError(message) from e


def linear_backoff(base_seconds: float) -> typing.Callable[[int], float]:
    """Backoff of ``base_seconds * attempt`` before the attempt after ``attempt``."""
    return lambda attempt: base_seconds * attempt


async def retry_with_backoff(
    operation_factory: typing.Callable[[], typing.Awaitable[T]],
    *,
    attempts: int,
    timeout_seconds: float,
    backoff: typing.Callable[[int], float],
    timeout_message: str = "Operation timed out",
    label: str = "operation",
    give_up_on: tuple[type[BaseException], ...] = (),
) -> T:
    """
    Run ``operation_factory()`` up to ``attempts`` times, each under ``with_timeout``.

    Attempts run sequentially. After failed attempt ``n`` (1-based) the loop sleeps
    ``backoff(n)`` seconds, except after the last attempt. Cancellation is never retried.
    Exceptions listed in ``give_up_on`` (e.g. missing credentials) are re-raised at once.

    Raises:
        RetryExhaustedError: carrying the last attempt's exception.
    """
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await with_timeout(operation_factory(), timeout_seconds, timeout_message)
        except give_up_on:
            raise
        except Exception as e:  # noqa: BLE001
            last_error = e
            logger.warning("%s attempt %d/%d failed: %s", label, attempt, attempts, e)
            if attempt < attempts:
                delay = backoff(attempt)
                if delay > 0:
                    await asyncio.sleep(delay)

    raise RetryExhaustedError(label, attempts, last_error)
