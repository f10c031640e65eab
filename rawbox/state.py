"""
Session state container.

SessionStateModel owns the in-memory SessionState. The state object is
immutable; every transition replaces it in a single commit and then
notifies subscribers, so observers never see a half-applied change.
"""
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from .client import FileServiceClient
from .core.api import AUTH_INVALIDATED, EventEmitter, RawBoxError
from .core.logging import get_logger
from .core.models import FileEntry, StatsSummary
from .core.session import Credential, CredentialKind, CredentialStore

Subscriber = Callable[['SessionState'], None]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the client session."""
    credential: Optional[Credential] = None
    api_credential: Optional[Credential] = None
    current_path: str = '/'
    listing: Tuple[FileEntry, ...] = ()
    is_loading: bool = False
    last_error: Optional[RawBoxError] = None
    stats: Optional[StatsSummary] = None

    @property
    def is_authenticated(self) -> bool:
        return self.credential is not None

    @property
    def needs_login(self) -> bool:
        """True when the last failure was an expired or rejected session."""
        return self.last_error is not None and self.last_error.is_auth


# Fields reset by logout; current_path survives
LOGGED_OUT: Dict[str, Any] = {
    'credential': None,
    'api_credential': None,
    'listing': (),
    'stats': None,
    'last_error': None,
}


class SessionStateModel:
    """
    Observable session state with async actions.

    Example:
        >>> model = SessionStateModel(client)
        >>> model.subscribe(lambda state: print(state.is_loading))
        >>> await model.login("admin", "secret")
        >>> await model.list_directory("/docs")
        >>> model.state.listing
    """

    def __init__(
        self,
        client: FileServiceClient,
        store: Optional[CredentialStore] = None,
        events: Optional[EventEmitter] = None
    ):
        """
        Initialize the model from whatever credentials the store holds.

        Args:
            client: Client used by the actions
            store: Credential store (the client's if omitted)
            events: Channel carrying ``auth-invalidated`` (the client's if omitted)
        """
        self._client = client
        self._store = store if store is not None else client.store
        self._events = events if events is not None else client.events
        self._subscribers: List[Subscriber] = []
        self._in_flight = 0
        self._pending_logout = False
        self._logger = get_logger('rawbox.state')

        self._state = SessionState(
            credential=self._store.get(CredentialKind.SESSION),
            api_credential=self._store.get(CredentialKind.API),
        )
        self._events.on(AUTH_INVALIDATED, self._on_auth_invalidated)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def client(self) -> FileServiceClient:
        return self._client

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a state observer.

        Returns:
            Function removing the observer
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def close(self) -> None:
        """Stop listening for invalidation broadcasts."""
        self._events.off(AUTH_INVALIDATED, self._on_auth_invalidated)

    def _commit(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for callback in list(self._subscribers):
            try:
                callback(self._state)
            except Exception:
                self._logger.exception("State subscriber failed")

    async def _run(
        self,
        operation: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], Dict[str, Any]]
    ) -> Any:
        """
        Loading -> Ready / Failed around one client call.

        Each transition is one commit. An invalidation broadcast received
        while the call is in flight is folded into the settling commit.
        """
        self._commit(is_loading=True, last_error=None)
        self._in_flight += 1
        try:
            result = await operation()
        except RawBoxError as error:
            changes: Dict[str, Any] = {'is_loading': False}
            pending = self._take_pending_logout()
            if error.is_auth or pending:
                self._store.clear_all()
                changes.update(LOGGED_OUT)
            changes['last_error'] = error
            self._settle(changes)
            raise
        except Exception:
            changes = {'is_loading': False}
            if self._take_pending_logout():
                changes.update(LOGGED_OUT)
            self._settle(changes)
            raise

        changes = {'is_loading': False, **on_success(result)}
        if self._take_pending_logout():
            self._store.clear_all()
            changes.update(LOGGED_OUT)
        self._settle(changes)
        return result

    def _settle(self, changes: Dict[str, Any]) -> None:
        self._in_flight -= 1
        self._commit(**changes)

    def _take_pending_logout(self) -> bool:
        pending = self._pending_logout
        self._pending_logout = False
        return pending

    def _on_auth_invalidated(self, message: str) -> None:
        self._logger.info(f"Auth invalidated: {message}")
        if self._in_flight:
            # the running action commits the logout together with its result
            self._store.clear_all()
            self._pending_logout = True
            return
        self.logout()

    # =========================================================================
    # Actions
    # =========================================================================

    async def login(self, username: str, password: str) -> Credential:
        """Log in and persist the session credential."""
        def settle(credential: Credential) -> Dict[str, Any]:
            self._store.set(CredentialKind.SESSION, credential.value)
            return {'credential': credential}

        return await self._run(lambda: self._client.login(username, password), settle)

    def logout(self) -> None:
        """Drop credentials, listing, stats and error; keep the current path."""
        self._store.clear_all()
        self._commit(**LOGGED_OUT)

    async def list_directory(self, path: str) -> List[FileEntry]:
        """List a directory and make it the current path."""
        return await self._run(
            lambda: self._client.list_directory(path, self._state.credential),
            lambda listing: {'listing': tuple(listing), 'current_path': path},
        )

    navigate = list_directory

    async def refresh(self) -> List[FileEntry]:
        """List the current path again."""
        return await self.list_directory(self._state.current_path)

    async def file_info(self, path: str) -> FileEntry:
        return await self._run(
            lambda: self._client.file_info(path, self._state.credential),
            lambda entry: {},
        )

    async def fetch_stats(
        self,
        start: Optional[Union[str, date]] = None,
        end: Optional[Union[str, date]] = None
    ) -> StatsSummary:
        return await self._run(
            lambda: self._client.fetch_stats(self._state.credential, start, end),
            lambda stats: {'stats': stats},
        )

    async def fetch_logs(self, day: Optional[Union[str, date]] = None) -> List[Dict[str, Any]]:
        return await self._run(
            lambda: self._client.fetch_logs(self._state.credential, day),
            lambda logs: {},
        )

    def set_session_token(self, token: str) -> Credential:
        """Adopt an externally obtained session token."""
        return self._set_token(CredentialKind.SESSION, 'credential', token)

    def set_api_token(self, token: str) -> Credential:
        return self._set_token(CredentialKind.API, 'api_credential', token)

    def clear_api_token(self) -> None:
        self._store.clear(CredentialKind.API)
        self._commit(api_credential=None)

    def _set_token(self, kind: CredentialKind, field_name: str, token: str) -> Credential:
        if not isinstance(token, str) or not token.strip():
            raise RawBoxError.validation("Token must be a non-empty string")
        token = token.strip()

        self._store.set(kind, token)
        credential = Credential(kind, token)
        self._commit(**{field_name: credential})
        return credential

    def download_url(self, path: str) -> str:
        """Download URL carrying the API credential, if one is set."""
        return self._client.download_url(path, self._state.api_credential)
