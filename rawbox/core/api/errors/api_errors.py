"""RawBox error kinds, exceptions and failure classification."""
import asyncio
import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    VALIDATION = 'validation'
    NETWORK = 'network'
    TIMEOUT = 'timeout'
    AUTH = 'auth'
    SERVER = 'server'
    NOT_FOUND = 'not_found'
    UNKNOWN = 'unknown'


RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT})


class APIErrorMessages:
    """Default human-readable messages."""

    BY_STATUS: Dict[int, str] = {
        400: 'The request was rejected as invalid.',
        401: 'Session expired, please log in again.',
        403: 'You are not allowed to access this resource.',
        404: 'The requested resource does not exist.',
        500: 'Server error, please try again later.',
    }

    BY_KIND: Dict[ErrorKind, str] = {
        ErrorKind.VALIDATION: 'Invalid request.',
        ErrorKind.NETWORK: 'Network connection failed.',
        ErrorKind.TIMEOUT: 'Request timed out.',
        ErrorKind.AUTH: BY_STATUS[401],
        ErrorKind.SERVER: BY_STATUS[500],
        ErrorKind.NOT_FOUND: BY_STATUS[404],
        ErrorKind.UNKNOWN: 'Unexpected error.',
    }

    @classmethod
    def get_message(cls, kind: ErrorKind, status: Optional[int] = None) -> str:
        """Gets default message for a status, falling back to the kind."""
        if status is not None and status in cls.BY_STATUS:
            return cls.BY_STATUS[status]
        if status is not None and status >= 500:
            return cls.BY_STATUS[500]
        return cls.BY_KIND[kind]


class RawBoxError(Exception):
    """
    A classified failure.

    ``kind`` and ``http_status`` are fixed at construction; ``retryable``
    is derived from the kind.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        http_status: Optional[int] = None
    ):
        self._kind = ErrorKind(kind)
        self._http_status = http_status
        self._message = message or APIErrorMessages.get_message(self._kind, http_status)
        super().__init__(self._message)

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def http_status(self) -> Optional[int]:
        return self._http_status

    @property
    def message(self) -> str:
        return self._message

    @property
    def retryable(self) -> bool:
        return self._kind in RETRYABLE_KINDS

    @property
    def is_auth(self) -> bool:
        return self._kind is ErrorKind.AUTH

    @classmethod
    def validation(cls, message: str) -> 'RawBoxError':
        """Local input error raised before any request is sent."""
        return cls(ErrorKind.VALIDATION, message)

    def __repr__(self) -> str:
        return (
            f"RawBoxError(kind={self._kind.value!r}, "
            f"http_status={self._http_status!r}, message={self._message!r})"
        )


class HTTPStatusFailure(Exception):
    """Raw failure for a response whose status is 400 or above."""

    def __init__(self, status: int, body: bytes = b''):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}")

    def server_message(self) -> Optional[str]:
        """Message the server put in a JSON body, if any."""
        try:
            data = json.loads(self.body.decode('utf-8'))
        except (ValueError, UnicodeDecodeError):
            return None
        if not isinstance(data, dict):
            return None

        for key in ('message', 'error', 'detail'):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None


def _kind_for_status(status: int) -> ErrorKind:
    if status == 401:
        return ErrorKind.AUTH
    if status == 400:
        return ErrorKind.VALIDATION
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status >= 500:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


def is_timeout(failure: Any) -> bool:
    """True for client-side timeout signals."""
    return isinstance(failure, (asyncio.TimeoutError, TimeoutError))


def classify(failure: Any) -> RawBoxError:
    """
    Map a raw failure to exactly one error kind.

    Args:
        failure: Exception raised by the transport or response handling

    Returns:
        RawBoxError (the same object if it is already classified)
    """
    if isinstance(failure, RawBoxError):
        return failure

    # aiohttp.ClientResponseError and HTTPStatusFailure both expose .status
    status = getattr(failure, 'status', None)

    if not isinstance(status, int):
        if is_timeout(failure):
            return RawBoxError(ErrorKind.TIMEOUT)
        detail = str(failure) if str(failure) else type(failure).__name__
        message = f"{APIErrorMessages.BY_KIND[ErrorKind.NETWORK]} ({detail})"
        return RawBoxError(ErrorKind.NETWORK, message)

    kind = _kind_for_status(status)
    message = None
    if isinstance(failure, HTTPStatusFailure):
        message = failure.server_message()
    return RawBoxError(kind, message, http_status=status)
