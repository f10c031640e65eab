"""
Request pipeline.

Every network call goes through RequestPipeline.execute, which attaches
credentials, classifies failures, retries what is safe to retry and
turns 401 responses into a credential teardown plus one
``auth-invalidated`` broadcast.
"""
import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence

import aiohttp

from ..async_client import Transport, TransportResponse
from ..config import APIConfig
from ..errors import HTTPStatusFailure, RawBoxError, classify
from ..events import AUTH_INVALIDATED, EventEmitter
from ...logging import get_logger
from ...session.protocols import CredentialStore
from .request_builder import RequestBuilder, RequestSpec, RetryOptions
from .stages import CredentialStage, LoggingStage, Stage

# Raw failures the pipeline classifies; anything else is a bug and propagates
TRANSPORT_FAILURES = (
    HTTPStatusFailure,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    TimeoutError,
    OSError,
)


class RequestPipeline:
    """
    Single chokepoint for outbound calls.

    Holds no per-call state: credentials are read from the store on each
    dispatch and retry counters live in execute().

    Example:
        >>> pipeline = RequestPipeline(transport, store, events, config)
        >>> response = await pipeline.execute(RequestSpec.get('/admin/files'))
    """

    def __init__(
        self,
        transport: Transport,
        store: CredentialStore,
        events: EventEmitter,
        config: Optional[APIConfig] = None,
        *,
        stages: Optional[Sequence[Stage]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        """
        Initialize pipeline.

        Args:
            transport: Object sending the HTTP requests
            store: Credential store read on every dispatch
            events: Channel receiving ``auth-invalidated``
            config: API configuration
            stages: Extra stages, run after credential injection and logging
            sleep: Coroutine used for backoff delays (asyncio.sleep)
        """
        self._config = config or APIConfig.default()
        self._transport = transport
        self._store = store
        self._events = events
        self._builder = RequestBuilder(self._config)
        self._sleep = sleep or asyncio.sleep
        self._logger = get_logger('rawbox.pipeline')

        self._stages: List[Stage] = [
            CredentialStage(store, self._config),
            LoggingStage(self._logger),
        ]
        self._stages.extend(stages or ())

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def stages(self) -> List[Stage]:
        return list(self._stages)

    async def execute(
        self,
        spec: RequestSpec,
        retry: Optional[RetryOptions] = None
    ) -> TransportResponse:
        """
        Execute a request with retry and auth handling.

        Args:
            spec: Request description
            retry: Retry bounds (configured defaults if not provided)

        Returns:
            The successful response, unchanged

        Raises:
            RawBoxError: Classified failure of the final attempt
        """
        options = retry or RetryOptions.from_config(self._config.retry)
        strategy = options.strategy()
        attempt = 1

        while True:
            if attempt > 1:
                delay = await strategy.wait_async(attempt, self._sleep)
                self._logger.debug(f"{spec.describe()} waited {delay:.2f}s before attempt {attempt}")

            cause: Optional[BaseException] = None
            try:
                return await self._dispatch(spec, attempt)
            except RawBoxError as e:
                error = e
            except TRANSPORT_FAILURES as e:
                cause = e
                error = classify(e)

            if error.is_auth:
                self._invalidate(error)

            for stage in self._stages:
                stage.on_error(spec, error, attempt)

            if not strategy.should_retry(error, attempt, options.max_attempts):
                self._logger.error(
                    f"{spec.describe()} failed after {attempt} attempt(s): {error.message}"
                )
                if cause is not None:
                    raise error from cause
                raise error

            self._logger.warning(
                f"Retrying {spec.describe()} after {error.kind.value} error, "
                f"attempt {attempt + 1} of {options.max_attempts}"
            )
            attempt += 1

    async def _dispatch(self, spec: RequestSpec, attempt: int) -> TransportResponse:
        """Run the before-stages, send, and check the status."""
        headers = dict(spec.headers)
        for stage in self._stages:
            stage.before(spec, headers, attempt)

        response = await self._transport.send(
            spec.method,
            self._builder.build_url(spec),
            params=spec.params,
            json_body=spec.json_body,
            headers=headers,
        )

        if not response.ok:
            raise HTTPStatusFailure(response.status, response.body)

        for stage in self._stages:
            stage.after(spec, response, attempt)
        return response

    def _invalidate(self, error: RawBoxError) -> None:
        """Clear every stored credential and broadcast the invalidation."""
        self._store.clear_all()
        self._logger.warning(f"Session invalidated: {error.message}")
        self._events.emit(AUTH_INVALIDATED, error.message)
