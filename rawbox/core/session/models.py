"""
Credential models.

Contains data classes for stored credentials.
"""
from dataclasses import dataclass
from enum import Enum


class CredentialKind(str, Enum):
    """Kind tag of a stored credential."""

    SESSION = 'session'
    API = 'api'


@dataclass(frozen=True)
class Credential:
    """
    An opaque token and its kind.

    Attributes:
        kind: SESSION gates authenticated operations, API is the
            lower-privilege token accepted by download URLs
        value: Token string as issued by the server
    """
    kind: CredentialKind
    value: str

    @classmethod
    def session(cls, value: str) -> 'Credential':
        return cls(CredentialKind.SESSION, value)

    @classmethod
    def api(cls, value: str) -> 'Credential':
        return cls(CredentialKind.API, value)

    def __repr__(self) -> str:
        # Keep tokens out of logs and tracebacks
        return f"Credential(kind={self.kind.value!r}, value='***')"
