"""Request description and URL building."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

from ..config import APIConfig, RetryConfig
from ..retry import ExponentialBackoffStrategy, RetryStrategy


@dataclass(frozen=True)
class RequestSpec:
    """
    One logical API call.

    Attributes:
        method: HTTP method
        endpoint: Path relative to the configured base URL
        params: Query string parameters
        json_body: JSON payload for POST requests
        headers: Extra request headers
        credential: Explicit session token; overrides the stored one
        authenticated: Whether the session header should be attached
    """
    method: str
    endpoint: str
    params: Optional[Dict[str, str]] = None
    json_body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    credential: Optional[str] = None
    authenticated: bool = True

    @classmethod
    def get(cls, endpoint: str, **kwargs) -> 'RequestSpec':
        return cls('GET', endpoint, **kwargs)

    @classmethod
    def post(cls, endpoint: str, json_body: Any = None, **kwargs) -> 'RequestSpec':
        return cls('POST', endpoint, json_body=json_body, **kwargs)

    def describe(self) -> str:
        return f"{self.method} {self.endpoint}"


@dataclass(frozen=True)
class RetryOptions:
    """Per-call retry bounds."""
    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @classmethod
    def from_config(cls, config: RetryConfig) -> 'RetryOptions':
        return cls(
            max_attempts=config.max_attempts,
            initial_delay=config.initial_delay,
            backoff_multiplier=config.backoff_multiplier,
        )

    @classmethod
    def no_retry(cls) -> 'RetryOptions':
        return cls(max_attempts=1)

    def strategy(self) -> RetryStrategy:
        return ExponentialBackoffStrategy(self.initial_delay, self.backoff_multiplier)


class RequestBuilder:
    """Builds absolute URLs from the configured base URL."""

    def __init__(self, config: APIConfig):
        """Initializes request builder."""
        self.config = config

    def build_url(self, spec: RequestSpec) -> str:
        """Absolute URL for a request (query string is sent separately)."""
        return self.config.url_for(spec.endpoint)

    def build_download_url(self, path: str, api_token: Optional[str] = None) -> str:
        """URL of a static file, optionally carrying the API token."""
        url = f"{self.config.base_url}/{quote(path.lstrip('/'), safe='/')}"
        if api_token:
            url += '?' + urlencode({'api': api_token})
        return url
