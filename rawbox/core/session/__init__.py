"""
Credential storage module.

Provides persistent storage for the session and API credentials.
"""
from .models import Credential, CredentialKind
from .protocols import CredentialStore
from .sqlite_store import SQLiteCredentialStore
from .memory_store import MemoryCredentialStore

__all__ = [
    'Credential',
    'CredentialKind',
    'CredentialStore',
    'SQLiteCredentialStore',
    'MemoryCredentialStore',
]
