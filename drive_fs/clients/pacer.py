"""
Request pacing and retry for calls against the drive API.
"""
import threading
import time
from typing import Callable, Optional, TypeVar

from loguru import logger


T = TypeVar('T')


def is_transient(error: Exception) -> bool:
    """Default retry predicate: errors that flag themselves as transient."""
    return bool(getattr(error, 'is_transient', False))


class Pacer:
    """
    Shared rate limiter with retry/backoff.

    One instance is shared by every call an adapter issues. Calls are spaced
    at least `sleep` seconds apart across all threads. A retried failure
    grows the spacing (attack), a success shrinks it again (decay), bounded
    by min_sleep and max_sleep.
    """

    def __init__(self, min_sleep: float = 0.01, max_sleep: float = 2.0,
                 attack: float = 2.0, decay: float = 2.0, attempts: int = 2):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.min_sleep = min_sleep
        self.max_sleep = max_sleep
        self.attack = attack
        self.decay = decay
        self.attempts = attempts
        self._sleep = min_sleep
        self._next_slot = 0.0
        self._lock = threading.Lock()

    @property
    def sleep(self) -> float:
        with self._lock:
            return self._sleep

    def wait(self) -> None:
        """Block until this caller's turn to issue a request."""
        with self._lock:
            now = time.monotonic()
            start = max(now, self._next_slot)
            self._next_slot = start + self._sleep
        delay = start - now
        if delay > 0:
            time.sleep(delay)

    def backoff(self) -> float:
        """Grow the spacing by one step and return the new value."""
        with self._lock:
            self._sleep = min(max(self._sleep * self.attack, self.min_sleep), self.max_sleep)
            self._next_slot = max(self._next_slot, time.monotonic() + self._sleep)
            return self._sleep

    def reset(self) -> None:
        """Shrink the spacing by one step after a success."""
        with self._lock:
            self._sleep = max(self._sleep / self.decay, self.min_sleep)

    def call(self, operation: Callable[[], T],
             should_retry: Callable[[Exception], bool] = is_transient,
             attempts: Optional[int] = None) -> T:
        """
        Run an operation through the rate limiter, retrying transient failures.

        Args:
            operation: Zero-argument callable issuing one request
            should_retry: Predicate deciding whether a failure is worth another attempt
            attempts: Total attempts allowed, defaults to the pacer's setting

        Returns:
            Whatever the operation returns

        Raises:
            The operation's exception once attempts are exhausted or the
            failure is not retryable
        """
        attempts = attempts or self.attempts
        for attempt in range(1, attempts + 1):
            self.wait()
            try:
                result = operation()
            except Exception as e:
                if attempt >= attempts or not should_retry(e):
                    raise
                delay = self.backoff()
                logger.warning(f"Request failed (attempt {attempt}/{attempts}), retrying in {delay:.2f}s: {e}")
                continue
            self.reset()
            return result
