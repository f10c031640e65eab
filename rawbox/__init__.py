"""
RawBox - Async Python client for the RawBox file-sharing service.

Usage:
    >>> from rawbox import FileServiceClient, SessionStateModel, APIConfig
    >>>
    >>> async with FileServiceClient(APIConfig.from_env()) as client:
    ...     model = SessionStateModel(client)
    ...     await model.login("admin", "secret")
    ...     await model.list_directory("/")
    ...     print(model.state.listing)
"""
from .client import FileServiceClient
from .state import SessionState, SessionStateModel

from .core.api import (
    APIConfig,
    TimeoutConfig,
    RetryConfig,
    StorageConfig,
    ErrorKind,
    RawBoxError,
    EventEmitter,
    AUTH_INVALIDATED,
    RequestPipeline,
    RequestSpec,
    RetryOptions,
)
from .core.models import FileEntry, StatsSummary
from .core.session import (
    Credential,
    CredentialKind,
    CredentialStore,
    SQLiteCredentialStore,
    MemoryCredentialStore,
)
from .core.logging import setup_logging

__version__ = '1.0.0'

__all__ = [
    'FileServiceClient',
    'SessionState',
    'SessionStateModel',
    'APIConfig',
    'TimeoutConfig',
    'RetryConfig',
    'StorageConfig',
    'ErrorKind',
    'RawBoxError',
    'EventEmitter',
    'AUTH_INVALIDATED',
    'RequestPipeline',
    'RequestSpec',
    'RetryOptions',
    'FileEntry',
    'StatsSummary',
    'Credential',
    'CredentialKind',
    'CredentialStore',
    'SQLiteCredentialStore',
    'MemoryCredentialStore',
    'setup_logging',
]
