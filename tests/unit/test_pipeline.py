"""Tests for the request pipeline."""
import asyncio
from unittest.mock import Mock

import aiohttp
import pytest

from rawbox.core.api import (
    AUTH_INVALIDATED,
    ErrorKind,
    RawBoxError,
    RequestPipeline,
    RequestSpec,
    RetryOptions,
    Stage,
)
from rawbox.core.session import CredentialKind


@pytest.fixture
def pipeline(transport, store, events, config, fake_sleep):
    return RequestPipeline(transport, store, events, config, sleep=fake_sleep)


@pytest.fixture
def invalidations(events):
    """Messages broadcast on auth-invalidated."""
    received = []
    events.on(AUTH_INVALIDATED, received.append)
    return received


FILES = RequestSpec.get('/admin/files', params={'dir': '/'})


class TestCredentialInjection:
    """Session header handling."""

    @pytest.mark.asyncio
    async def test_attaches_stored_session(self, pipeline, transport, store, respond):
        store.set(CredentialKind.SESSION, "stored-token")
        transport.queue(respond(200, {'files': []}))

        await pipeline.execute(FILES)

        assert transport.calls[0].headers['Authorization'] == 'Bearer stored-token'
        assert transport.calls[0].url == 'http://rawbox.test/admin/files'
        assert transport.calls[0].params == {'dir': '/'}

    @pytest.mark.asyncio
    async def test_explicit_credential_wins(self, pipeline, transport, store, respond):
        store.set(CredentialKind.SESSION, "stored-token")
        transport.queue(respond(200, {}))

        await pipeline.execute(RequestSpec.get('/admin/files', credential='explicit'))

        assert transport.calls[0].headers['Authorization'] == 'Bearer explicit'

    @pytest.mark.asyncio
    async def test_no_header_without_credential(self, pipeline, transport, respond):
        transport.queue(respond(200, {}))

        await pipeline.execute(FILES)

        assert 'Authorization' not in transport.calls[0].headers

    @pytest.mark.asyncio
    async def test_unauthenticated_request(self, pipeline, transport, store, respond):
        store.set(CredentialKind.SESSION, "stored-token")
        transport.queue(respond(200, {'token': 't'}))

        await pipeline.execute(RequestSpec.post('/admin/login', {'username': 'a'}, authenticated=False))

        assert 'Authorization' not in transport.calls[0].headers
        assert transport.calls[0].json_body == {'username': 'a'}

    @pytest.mark.asyncio
    async def test_credential_read_on_every_attempt(self, pipeline, transport, store, respond):
        """Test a token replaced between attempts is used by the retry."""
        store.set(CredentialKind.SESSION, "first")

        def fail_and_rotate(request):
            store.set(CredentialKind.SESSION, "second")
            return aiohttp.ClientConnectionError("refused")

        transport.queue(fail_and_rotate, respond(200, {}))

        await pipeline.execute(FILES)

        assert [c.headers['Authorization'] for c in transport.calls] == ['Bearer first', 'Bearer second']


class TestSuccess:

    @pytest.mark.asyncio
    async def test_response_returned_unchanged(self, pipeline, transport, respond):
        response = respond(200, {'files': [{'name': 'a'}]})
        transport.queue(response)

        assert await pipeline.execute(FILES) is response

    @pytest.mark.asyncio
    async def test_no_delay_before_first_attempt(self, pipeline, transport, respond, sleeps):
        transport.queue(respond(200, {}))

        await pipeline.execute(FILES)

        assert sleeps == []


class TestAuthFailure:
    """401 handling."""

    @pytest.mark.asyncio
    async def test_clears_credentials_and_broadcasts_once(
        self, pipeline, transport, store, respond, invalidations
    ):
        store.set(CredentialKind.SESSION, "expired")
        store.set(CredentialKind.API, "api")
        transport.queue(respond(401, {'code': 401, 'message': 'token expired'}))

        with pytest.raises(RawBoxError) as exc_info:
            await pipeline.execute(FILES, RetryOptions(max_attempts=5))

        assert exc_info.value.kind is ErrorKind.AUTH
        assert exc_info.value.http_status == 401
        assert store.get(CredentialKind.SESSION) is None
        assert store.get(CredentialKind.API) is None
        assert invalidations == ['token expired']
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_one_broadcast_per_failed_call(self, pipeline, transport, respond, invalidations):
        transport.queue(respond(401, {}), respond(401, {}))

        for _ in range(2):
            with pytest.raises(RawBoxError):
                await pipeline.execute(FILES)

        assert len(invalidations) == 2

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_mask_error(self, pipeline, transport, events, respond):
        events.on(AUTH_INVALIDATED, Mock(side_effect=RuntimeError("listener bug")))
        transport.queue(respond(401, {}))

        with pytest.raises(RawBoxError) as exc_info:
            await pipeline.execute(FILES)

        assert exc_info.value.kind is ErrorKind.AUTH


class TestRetry:
    """Retry and backoff behaviour."""

    @pytest.mark.asyncio
    async def test_recovers_after_connection_errors(self, pipeline, transport, respond, sleeps):
        response = respond(200, {'files': []})
        transport.queue(
            aiohttp.ClientConnectionError("refused"),
            aiohttp.ClientConnectionError("refused"),
            response,
        )

        result = await pipeline.execute(FILES, RetryOptions(max_attempts=3))

        assert result is response
        assert sleeps == [1.0, 2.0]
        assert len(transport.calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_at_max_attempts(self, pipeline, transport, sleeps):
        transport.queue(*[aiohttp.ClientConnectionError("refused") for _ in range(3)])

        with pytest.raises(RawBoxError) as exc_info:
            await pipeline.execute(FILES, RetryOptions(max_attempts=3))

        assert exc_info.value.kind is ErrorKind.NETWORK
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)
        assert len(transport.calls) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_timeout_retried(self, pipeline, transport, respond):
        transport.queue(asyncio.TimeoutError(), respond(200, {}))

        await pipeline.execute(FILES)

        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_custom_backoff(self, pipeline, transport, respond, sleeps):
        transport.queue(*[aiohttp.ClientConnectionError() for _ in range(3)], respond(200, {}))

        await pipeline.execute(
            FILES,
            RetryOptions(max_attempts=4, initial_delay=0.1, backoff_multiplier=3),
        )

        assert sleeps == pytest.approx([0.1, 0.3, 0.9])

    @pytest.mark.asyncio
    async def test_defaults_from_config(self, pipeline, transport, sleeps):
        """Test the configured max_attempts applies when no options are given."""
        transport.queue(*[aiohttp.ClientConnectionError() for _ in range(3)])

        with pytest.raises(RawBoxError):
            await pipeline.execute(FILES)

        assert len(transport.calls) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize('status,kind', [
        (500, ErrorKind.SERVER),
        (404, ErrorKind.NOT_FOUND),
        (400, ErrorKind.VALIDATION),
        (403, ErrorKind.UNKNOWN),
    ])
    async def test_not_retried_and_no_teardown(
        self, pipeline, transport, store, respond, invalidations, sleeps, status, kind
    ):
        store.set(CredentialKind.SESSION, "valid")
        transport.queue(respond(status, {}))

        with pytest.raises(RawBoxError) as exc_info:
            await pipeline.execute(FILES)

        assert exc_info.value.kind is kind
        assert len(transport.calls) == 1
        assert sleeps == []
        assert invalidations == []
        assert store.get(CredentialKind.SESSION).value == "valid"

    @pytest.mark.asyncio
    async def test_programming_errors_propagate(self, pipeline, transport):
        """Test non-transport exceptions are not classified or retried."""
        transport.queue(ValueError("bug"))

        with pytest.raises(ValueError):
            await pipeline.execute(FILES)

        assert len(transport.calls) == 1


class TestStages:
    """Custom stages."""

    @pytest.mark.asyncio
    async def test_stage_short_circuits(self, transport, store, events, config, fake_sleep):
        class Guard(Stage):
            def before(self, spec, headers, attempt):
                raise RawBoxError.validation("blocked")

        pipeline = RequestPipeline(transport, store, events, config, stages=[Guard()], sleep=fake_sleep)

        with pytest.raises(RawBoxError) as exc_info:
            await pipeline.execute(FILES)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_stage_hooks(self, transport, store, events, config, fake_sleep, respond):
        """Test custom stages run after credential injection and see every outcome."""
        seen = []

        class Recorder(Stage):
            def before(self, spec, headers, attempt):
                seen.append(('before', attempt, headers.get('Authorization')))
                headers['X-Trace'] = str(attempt)

            def after(self, spec, response, attempt):
                seen.append(('after', attempt, response.status))

            def on_error(self, spec, error, attempt):
                seen.append(('error', attempt, error.kind))

        store.set(CredentialKind.SESSION, "tok")
        pipeline = RequestPipeline(transport, store, events, config, stages=[Recorder()], sleep=fake_sleep)
        transport.queue(asyncio.TimeoutError(), respond(200, {}))

        await pipeline.execute(FILES)

        assert seen == [
            ('before', 1, 'Bearer tok'),
            ('error', 1, ErrorKind.TIMEOUT),
            ('before', 2, 'Bearer tok'),
            ('after', 2, 200),
        ]
        assert transport.calls[1].headers['X-Trace'] == '2'
