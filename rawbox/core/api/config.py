"""
API configuration module.

Provides configuration for the RawBox client. Every deployment-specific
value can be overridden from the environment through APIConfig.from_env().
"""
import os
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Mapping


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    A request that has not completed within ``total`` seconds is
    abandoned and classified as a timeout.
    """
    total: float = 30.0
    connect: Optional[float] = None

    def __post_init__(self):
        if self.total <= 0:
            raise ValueError("timeout must be positive")

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(total=self.total, connect=self.connect)


@dataclass
class RetryConfig:
    """
    Retry configuration.

    ``max_attempts`` counts the first attempt, so 3 means two retries.
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")


@dataclass
class StorageConfig:
    """Names of the durable keys holding the two credentials."""
    session_key: str = 'rawbox_session_token'
    api_key: str = 'rawbox_api_token'

    def __post_init__(self):
        if not self.session_key or not self.api_key:
            raise ValueError("storage key names must be non-empty")
        if self.session_key == self.api_key:
            raise ValueError("session and API credentials need distinct storage keys")


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes all configuration options for the RawBox client.
    """
    base_url: str = 'http://localhost:18080'

    # Endpoints
    login_endpoint: str = '/admin/login'
    files_endpoint: str = '/admin/files'
    logs_endpoint: str = '/admin/logs'

    # Session credential header, sent as "<scheme> <token>"
    auth_header: str = 'Authorization'
    auth_scheme: Optional[str] = 'Bearer'

    user_agent: str = 'rawbox/1.0.0'

    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Aggregate raw access logs locally when the server sends no stats
    summarize_raw_logs: bool = False

    extra_headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.base_url = self.base_url.rstrip('/')

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> 'APIConfig':
        """
        Create configuration from RAWBOX_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ
            **kwargs: Explicit values, taking precedence over the environment

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if env.get('RAWBOX_BASE_URL'):
            values['base_url'] = env['RAWBOX_BASE_URL']
        if env.get('RAWBOX_TIMEOUT'):
            values['timeout'] = TimeoutConfig(total=float(env['RAWBOX_TIMEOUT']))

        retry = RetryConfig(
            max_attempts=int(env.get('RAWBOX_MAX_RETRIES', RetryConfig.max_attempts)),
            initial_delay=float(env.get('RAWBOX_RETRY_DELAY', RetryConfig.initial_delay)),
            backoff_multiplier=float(
                env.get('RAWBOX_BACKOFF_MULTIPLIER', RetryConfig.backoff_multiplier)
            ),
        )
        values['retry'] = retry

        values['storage'] = StorageConfig(
            session_key=env.get('RAWBOX_SESSION_STORAGE_KEY') or StorageConfig.session_key,
            api_key=env.get('RAWBOX_API_STORAGE_KEY') or StorageConfig.api_key,
        )

        if env.get('RAWBOX_SUMMARIZE_LOGS'):
            values['summarize_raw_logs'] = _env_bool(env['RAWBOX_SUMMARIZE_LOGS'])

        values.update(kwargs)
        return cls(**values)

    def url_for(self, endpoint: str) -> str:
        """Absolute URL for an endpoint path."""
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def format_auth_value(self, token: str) -> str:
        """Header value carrying the session token."""
        if self.auth_scheme:
            return f"{self.auth_scheme} {token}"
        return token

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
