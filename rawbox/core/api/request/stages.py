"""
Request stages.

A stage inspects or transforms a single call. Stages run in order before
each dispatch, after each successful response and after each failed
attempt. A stage short-circuits a call by raising RawBoxError from
``before``.
"""
import logging
from typing import Dict, Optional

from ..async_client import TransportResponse
from ..config import APIConfig
from ..errors import RawBoxError
from ...logging import get_logger
from ...session.models import CredentialKind
from ...session.protocols import CredentialStore
from .request_builder import RequestSpec


class Stage:
    """Base stage; every hook is a pass-through."""

    def before(self, spec: RequestSpec, headers: Dict[str, str], attempt: int) -> None:
        pass

    def after(self, spec: RequestSpec, response: TransportResponse, attempt: int) -> None:
        pass

    def on_error(self, spec: RequestSpec, error: RawBoxError, attempt: int) -> None:
        pass


class CredentialStage(Stage):
    """
    Attaches the session credential header.

    The credential is resolved on every dispatch, so a token replaced or
    cleared between retries is picked up.
    """

    def __init__(self, store: CredentialStore, config: APIConfig):
        self._store = store
        self._config = config

    def resolve(self, spec: RequestSpec) -> Optional[str]:
        if spec.credential:
            return spec.credential
        stored = self._store.get(CredentialKind.SESSION)
        return stored.value if stored else None

    def before(self, spec: RequestSpec, headers: Dict[str, str], attempt: int) -> None:
        if not spec.authenticated:
            return
        token = self.resolve(spec)
        if token:
            headers[self._config.auth_header] = self._config.format_auth_value(token)


class LoggingStage(Stage):
    """Logs dispatches, responses and failures."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or get_logger('rawbox.pipeline')

    def before(self, spec: RequestSpec, headers: Dict[str, str], attempt: int) -> None:
        self._logger.debug(f"{spec.describe()} attempt {attempt}")

    def after(self, spec: RequestSpec, response: TransportResponse, attempt: int) -> None:
        self._logger.debug(f"{spec.describe()} -> {response.status}")

    def on_error(self, spec: RequestSpec, error: RawBoxError, attempt: int) -> None:
        self._logger.info(
            f"{spec.describe()} attempt {attempt} failed: "
            f"{error.kind.value} ({error.http_status}) {error.message}"
        )
