"""
In-memory credential storage implementation.

Provides non-persistent credential storage for testing and temporary use.
"""
from typing import Dict, Optional

from ..api.config import StorageConfig
from .models import Credential, CredentialKind
from .protocols import CredentialStore


class MemoryCredentialStore(CredentialStore):
    """
    In-memory credential storage.

    Data is lost when the object is destroyed. Keys follow the same
    StorageConfig names as the durable store so the two are
    interchangeable.

    Example:
        >>> store = MemoryCredentialStore()
        >>> store.set(CredentialKind.SESSION, "token")
        >>> store.get(CredentialKind.SESSION).value
        'token'
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        """Initialize memory credential storage."""
        self._config = config or StorageConfig()
        self._data: Dict[str, str] = {}

    def _key(self, kind: CredentialKind) -> str:
        kind = CredentialKind(kind)
        if kind is CredentialKind.SESSION:
            return self._config.session_key
        return self._config.api_key

    def get(self, kind: CredentialKind) -> Optional[Credential]:
        value = self._data.get(self._key(kind))
        if not value:
            return None
        return Credential(CredentialKind(kind), value)

    def set(self, kind: CredentialKind, value: str) -> None:
        if not isinstance(value, str) or not value:
            raise ValueError("credential value must be a non-empty string")
        self._data[self._key(kind)] = value

    def clear(self, kind: CredentialKind) -> None:
        self._data.pop(self._key(kind), None)

    def clear_all(self) -> None:
        self._data = {
            key: value for key, value in self._data.items()
            if key not in (self._config.session_key, self._config.api_key)
        }

    def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass

    def __enter__(self) -> 'MemoryCredentialStore':
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
