"""Retry strategies using Strategy Pattern."""
from .retry_strategy import (
    RetryStrategy,
    ExponentialBackoffStrategy,
    NEVER_RETRY,
    delay_for,
)

__all__ = [
    'RetryStrategy',
    'ExponentialBackoffStrategy',
    'NEVER_RETRY',
    'delay_for',
]
