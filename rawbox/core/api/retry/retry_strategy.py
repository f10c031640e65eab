"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Iterable, Optional

from ..errors import ErrorKind, RawBoxError, RETRYABLE_KINDS

Sleep = Callable[[float], Awaitable[None]]

# Retrying cannot change the outcome of these
NEVER_RETRY = frozenset({ErrorKind.AUTH, ErrorKind.VALIDATION, ErrorKind.NOT_FOUND})


def delay_for(attempt: int, initial_delay: float, backoff_multiplier: float) -> float:
    """
    Delay to wait before the given attempt.

    Attempt 1 is sent immediately; attempt n >= 2 waits
    initial_delay * backoff_multiplier ** (n - 2).
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    if attempt == 1:
        return 0
    return initial_delay * (backoff_multiplier ** (attempt - 2))


class RetryStrategy(ABC):
    """Abstract retry strategy."""

    @abstractmethod
    def should_retry(self, error: RawBoxError, attempt: int, max_attempts: int) -> bool:
        """Determines if request should be retried."""
        pass

    @abstractmethod
    def delay_for(self, attempt: int) -> float:
        """Delay in seconds before the given attempt."""
        pass

    async def wait_async(self, attempt: int, sleep: Optional[Sleep] = None) -> float:
        """Waits before the given attempt; returns the delay used."""
        delay = self.delay_for(attempt)
        if delay > 0:
            await (sleep or asyncio.sleep)(delay)
        return delay


class ExponentialBackoffStrategy(RetryStrategy):
    """Exponential backoff retry strategy."""

    def __init__(
        self,
        initial_delay: float = 1.0,
        backoff_multiplier: float = 2.0,
        retryable_kinds: Optional[Iterable[ErrorKind]] = None
    ):
        if initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")
        if backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

        kinds = frozenset(RETRYABLE_KINDS if retryable_kinds is None else retryable_kinds)
        forbidden = kinds & NEVER_RETRY
        if forbidden:
            names = ', '.join(sorted(k.value for k in forbidden))
            raise ValueError(f"error kinds can never be retried: {names}")

        self.initial_delay = initial_delay
        self.backoff_multiplier = backoff_multiplier
        self.retryable_kinds = kinds

    def should_retry(self, error: RawBoxError, attempt: int, max_attempts: int) -> bool:
        """Retries retryable kinds until the attempt bound is reached."""
        if attempt >= max_attempts:
            return False
        return error.kind in self.retryable_kinds

    def delay_for(self, attempt: int) -> float:
        """Waits with exponential backoff."""
        return delay_for(attempt, self.initial_delay, self.backoff_multiplier)
