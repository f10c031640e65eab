"""
Async HTTP transport.

Thin aiohttp wrapper that sends one request and hands back the raw
response. It never retries and never interprets status codes; that is
the request pipeline's job.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import aiohttp

from .config import APIConfig
from ..logging import get_logger


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and body of a completed HTTP exchange."""
    status: int
    body: bytes = b''
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status < 400

    def text(self, encoding: str = 'utf-8') -> str:
        return self.body.decode(encoding, errors='replace')

    def json(self) -> Any:
        """Decode the body as JSON (raises ValueError on invalid data)."""
        return json.loads(self.body.decode('utf-8'))


@runtime_checkable
class Transport(Protocol):
    """Anything able to send one HTTP request."""

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> TransportResponse:
        ...


class AsyncHTTPClient:
    """
    aiohttp-backed transport.

    Example:
        >>> async with AsyncHTTPClient(APIConfig.default()) as http:
        ...     response = await http.send('GET', url)
    """

    def __init__(self, config: Optional[APIConfig] = None):
        """
        Initialize transport.

        Args:
            config: API configuration (uses defaults if not provided)
        """
        self._config = config or APIConfig.default()
        self._session: Optional[aiohttp.ClientSession] = None
        self._logger = get_logger('rawbox.transport')

    @property
    def config(self) -> APIConfig:
        return self._config

    async def __aenter__(self) -> 'AsyncHTTPClient':
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(**self._config.get_session_kwargs())
        return self._session

    async def close(self):
        """Close client and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> TransportResponse:
        """
        Send one request.

        Raises:
            aiohttp.ClientError: Connection level failures
            asyncio.TimeoutError: No response within the configured timeout
        """
        session = await self._ensure_session()

        async with session.request(
            method,
            url,
            params=params,
            json=json_body,
            headers=headers,
        ) as response:
            body = await response.read()
            self._logger.debug(f"{method} {url} -> {response.status} ({len(body)} bytes)")
            return TransportResponse(
                status=response.status,
                body=body,
                headers=dict(response.headers),
            )
