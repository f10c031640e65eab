"""RawBox API module."""
from .config import APIConfig, TimeoutConfig, RetryConfig, StorageConfig
from .errors import ErrorKind, RawBoxError, HTTPStatusFailure, classify
from .events import EventEmitter, AUTH_INVALIDATED
from .retry import RetryStrategy, ExponentialBackoffStrategy, delay_for
from .async_client import AsyncHTTPClient, Transport, TransportResponse
from .request import (
    RequestSpec,
    RetryOptions,
    RequestBuilder,
    ResponseHandler,
    Stage,
    CredentialStage,
    LoggingStage,
    RequestPipeline,
)

__all__ = [
    # Configuration
    'APIConfig',
    'TimeoutConfig',
    'RetryConfig',
    'StorageConfig',

    # Errors
    'ErrorKind',
    'RawBoxError',
    'HTTPStatusFailure',
    'classify',

    # Events
    'EventEmitter',
    'AUTH_INVALIDATED',

    # Retry
    'RetryStrategy',
    'ExponentialBackoffStrategy',
    'delay_for',

    # Transport
    'AsyncHTTPClient',
    'Transport',
    'TransportResponse',

    # Pipeline
    'RequestSpec',
    'RetryOptions',
    'RequestBuilder',
    'ResponseHandler',
    'Stage',
    'CredentialStage',
    'LoggingStage',
    'RequestPipeline',
]
