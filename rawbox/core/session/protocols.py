"""
Credential storage protocols.

Defines the interface for credential storage implementations.
"""
from typing import Protocol, Optional, runtime_checkable
from .models import Credential, CredentialKind


@runtime_checkable
class CredentialStore(Protocol):
    """
    Protocol for credential storage implementations.

    Implementations can use SQLite, a JSON file, a keyring or any other
    key/value backend. All calls are synchronous.
    """

    def get(self, kind: CredentialKind) -> Optional[Credential]:
        """
        Load a credential.

        Returns:
            Credential if one is stored, None otherwise
        """
        ...

    def set(self, kind: CredentialKind, value: str) -> None:
        """
        Store a credential, replacing any previous one of the same kind.
        """
        ...

    def clear(self, kind: CredentialKind) -> None:
        """
        Remove one credential.
        """
        ...

    def clear_all(self) -> None:
        """
        Remove both credentials in a single step.
        """
        ...

    def close(self) -> None:
        """
        Close storage connection and release resources.
        """
        ...
