"""RawBox API errors and exceptions."""
from .api_errors import (
    ErrorKind,
    RawBoxError,
    HTTPStatusFailure,
    APIErrorMessages,
    RETRYABLE_KINDS,
    classify,
    is_timeout,
)

__all__ = [
    'ErrorKind',
    'RawBoxError',
    'HTTPStatusFailure',
    'APIErrorMessages',
    'RETRYABLE_KINDS',
    'classify',
    'is_timeout',
]
