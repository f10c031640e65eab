"""
FileServiceClient - typed async operations against a RawBox server.

Example:
    >>> async with FileServiceClient(APIConfig.from_env()) as rawbox:
    ...     credential = await rawbox.login("admin", "secret")
    ...     for entry in await rawbox.list_directory("/docs", credential):
    ...         print(entry)
"""
import posixpath
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .core.api import (
    APIConfig,
    AsyncHTTPClient,
    ErrorKind,
    EventEmitter,
    RawBoxError,
    RequestBuilder,
    RequestPipeline,
    RequestSpec,
    ResponseHandler,
    RetryOptions,
    Transport,
)
from .core.logging import get_logger
from .core.models import DirectoryListing, FileEntry, StatsSummary
from .core.session import Credential, CredentialKind, CredentialStore, MemoryCredentialStore
from .core.stats import LogSummarizer, build_stats, summarize_logs

CredentialArg = Optional[Union[str, Credential]]
DateArg = Optional[Union[str, date]]


def _as_param(value: DateArg) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class FileServiceClient:
    """
    High-level async client for a RawBox server.

    Every operation validates its input before a request is built, so
    invalid calls fail with a VALIDATION error without touching the
    network. All requests go through one RequestPipeline.
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        *,
        store: Optional[CredentialStore] = None,
        events: Optional[EventEmitter] = None,
        transport: Optional[Transport] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        summarizer: Optional[LogSummarizer] = None
    ):
        """
        Initialize client.

        Args:
            config: API configuration (defaults if not provided)
            store: Credential store (in-memory if not provided)
            events: Channel receiving ``auth-invalidated`` broadcasts
            transport: HTTP transport (aiohttp if not provided)
            sleep: Coroutine used for retry delays
            summarizer: Aggregation for raw logs; defaults to
                summarize_logs when config.summarize_raw_logs is set
        """
        self._config = config or APIConfig.default()
        self._store = store if store is not None else MemoryCredentialStore(self._config.storage)
        self._events = events if events is not None else EventEmitter()
        self._owns_transport = transport is None
        self._transport = transport if transport is not None else AsyncHTTPClient(self._config)
        self._pipeline = RequestPipeline(
            self._transport,
            self._store,
            self._events,
            self._config,
            sleep=sleep,
        )
        self._builder = RequestBuilder(self._config)
        if summarizer is None and self._config.summarize_raw_logs:
            summarizer = summarize_logs
        self._summarizer = summarizer
        self._logger = get_logger('rawbox.client')

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def events(self) -> EventEmitter:
        return self._events

    @property
    def pipeline(self) -> RequestPipeline:
        return self._pipeline

    async def __aenter__(self) -> 'FileServiceClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self._transport, AsyncHTTPClient):
            await self._transport.close()

    # =========================================================================
    # Validation helpers
    # =========================================================================

    @staticmethod
    def _require_path(path: Any) -> str:
        if not isinstance(path, str) or not path.strip():
            raise RawBoxError.validation("Path must be a non-empty string")
        return path

    def _resolve_token(self, credential: CredentialArg) -> str:
        """Explicit credential first, then the stored session credential."""
        if isinstance(credential, Credential):
            token = credential.value
        else:
            token = credential.strip() if isinstance(credential, str) else None

        if not token:
            stored = self._store.get(CredentialKind.SESSION)
            token = stored.value if stored else None

        if not token:
            raise RawBoxError.validation("Not logged in: no session credential available")
        return token

    # =========================================================================
    # Operations
    # =========================================================================

    async def login(
        self,
        username: str,
        password: str,
        retry: Optional[RetryOptions] = None
    ) -> Credential:
        """
        Authenticate and return the session credential.

        The credential is not stored; the caller decides whether to keep it.

        Raises:
            RawBoxError: VALIDATION for blank fields, AUTH for rejected
                credentials, UNKNOWN if the reply carries no token
        """
        username = username.strip() if isinstance(username, str) else ''
        password_ok = isinstance(password, str) and password.strip()
        if not username or not password_ok:
            raise RawBoxError.validation("Username and password are required")

        spec = RequestSpec.post(
            self._config.login_endpoint,
            {'username': username, 'password': password},
            authenticated=False,
        )
        response = await self._pipeline.execute(spec, retry)
        data = ResponseHandler.parse_object(response)

        token = data.get('token')
        if not isinstance(token, str) or not token:
            message = data.get('message') or "Login reply did not contain a token"
            raise RawBoxError(ErrorKind.UNKNOWN, str(message), http_status=response.status)

        self._logger.info(f"Logged in as {username}")
        return Credential.session(token)

    async def list_directory(
        self,
        path: str,
        credential: CredentialArg = None,
        retry: Optional[RetryOptions] = None
    ) -> DirectoryListing:
        """
        List a directory.

        Args:
            path: Directory path on the server
            credential: Session credential (stored one if omitted)

        Returns:
            Entries in server order
        """
        path = self._require_path(path)
        token = self._resolve_token(credential)

        spec = RequestSpec.get(
            self._config.files_endpoint,
            params={'dir': path},
            credential=token,
        )
        response = await self._pipeline.execute(spec, retry)
        data = ResponseHandler.parse_object(response)

        return [
            FileEntry.from_api(item)
            for item in ResponseHandler.get_list(data, 'files')
            if isinstance(item, dict)
        ]

    async def file_info(
        self,
        path: str,
        credential: CredentialArg = None,
        retry: Optional[RetryOptions] = None
    ) -> FileEntry:
        """
        Metadata of one entry.

        There is no dedicated endpoint: the parent directory is listed and
        the entry matched by name, so this costs one listing round-trip.

        Raises:
            RawBoxError: NOT_FOUND if the parent has no entry of that name
        """
        path = self._require_path(path)
        token = self._resolve_token(credential)

        trimmed = path.rstrip('/')
        parent, name = posixpath.split(trimmed)
        if not name:
            raise RawBoxError.validation(f"'{path}' does not name a file or directory")

        for entry in await self.list_directory(parent or '/', token, retry):
            if entry.name == name:
                return entry

        raise RawBoxError(ErrorKind.NOT_FOUND, f"'{path}' was not found")

    def download_url(self, path: str, api_credential: CredentialArg = None) -> str:
        """
        Fetchable URL of a file. Pure: builds the URL only.

        Args:
            path: File path on the server
            api_credential: Optional API token appended as ``api=``
        """
        path = self._require_path(path)
        if isinstance(api_credential, Credential):
            api_credential = api_credential.value
        return self._builder.build_download_url(path, api_credential or None)

    async def fetch_stats(
        self,
        credential: CredentialArg = None,
        start: DateArg = None,
        end: DateArg = None,
        retry: Optional[RetryOptions] = None
    ) -> StatsSummary:
        """
        Usage statistics, optionally limited to a date range.

        Server aggregates are used as-is. Raw logs are only summarized when
        a summarizer is configured; otherwise the summary holds them
        without numbers.
        """
        token = self._resolve_token(credential)

        params: Dict[str, str] = {}
        if start is not None:
            params['start'] = _as_param(start)
        if end is not None:
            params['end'] = _as_param(end)

        spec = RequestSpec.get(
            self._config.logs_endpoint,
            params=params or None,
            credential=token,
        )
        response = await self._pipeline.execute(spec, retry)
        return build_stats(ResponseHandler.parse_object(response), self._summarizer)

    async def fetch_logs(
        self,
        credential: CredentialArg = None,
        date: DateArg = None,
        retry: Optional[RetryOptions] = None
    ) -> List[Dict[str, Any]]:
        """Raw access-log entries, optionally for a single day."""
        token = self._resolve_token(credential)

        params = {'date': _as_param(date)} if date is not None else None
        spec = RequestSpec.get(self._config.logs_endpoint, params=params, credential=token)
        response = await self._pipeline.execute(spec, retry)
        data = ResponseHandler.parse_object(response)

        return [entry for entry in ResponseHandler.get_list(data, 'logs') if isinstance(entry, dict)]
