"""
Easemob Push SDK for Python.

A Python client for the Easemob push-notification REST API, safe to share
between worker threads: every request goes through one fixed-window rate
limiter and one lazily refreshed app token.

Quick Start:
    >>> from easemob_push import EasemobClient
    >>> from easemob_push.push import PushMessage, PushService, PushStrategy
    >>> with EasemobClient("a1.easemob.com", "1122", "demo", "YXA6...", "YXA6...", rate=10) as client:
    ...     service = PushService(client)
    ...     service.push_single(
    ...         PushStrategy.THIRD_PARTY_FIRST,
    ...         targets=["user-1"],
    ...         message=PushMessage(title="Hello", content="World"),
    ...     )

Global Configuration:
    >>> from easemob_push import EASEMOB, EasemobClient
    >>>
    >>> # Pre-loaded with defaults + env vars
    >>> rate = EASEMOB.config.rate_limit.rate
    >>>
    >>> # Custom configuration
    >>> EASEMOB.configure(
    ...     app={"host": "a1.easemob.com", "org_name": "1122", "app_name": "demo"},
    ...     auth={"client_id": "x", "client_secret": "y"},
    ...     rate_limit={"rate": 10, "interval": 1.0},
    ... )
    >>> client = EasemobClient.from_config()

Main Classes:
    - EasemobClient: Shared client (rate limiter, app token, transport template).
    - PushService: Push endpoints (see `easemob_push.push`).

Configuration:
    - EASEMOB: Global SDK singleton for configuration.
    - EasemobConfig: Root configuration dataclass.
    - AppConfig: App coordinates (host, org_name, app_name).
    - AuthConfig: Client credentials and token TTL.
    - HttpConfig: Transport configuration.
    - RateLimitConfig: Rate limiting configuration.
    - ConfigEnvVarError: Exception raised when env var parsing fails.
    - ConfigValidationError: Exception raised when config validation fails.

Authentication:
    - TokenInfo: App token with expiration metadata.
    - AuthenticationError: Exception raised when the token exchange fails.

HTTP Client:
    - HttpClient: Abstract base class for HTTP transports.
    - RequestsHttpClient: Default transport backed by `requests`.

Rate Limiting:
    - FixedWindowLimiter: N permits per interval, reset by a background clock.
    - AdmissionCancelledError: Raised when a permit wait is cancelled.
    - AdmissionTimeoutError: Raised when a permit wait times out.

Errors:
    - EasemobError: Base class of every SDK error.
    - ClientClosedError: Raised when a closed client is used.
"""

from importlib.metadata import version as _get_version

__version__ = _get_version("easemob-push")

from easemob_push._auth import (
    AuthenticationError,
    TokenInfo,
)
from easemob_push._client import EasemobClient
from easemob_push._config import (
    EASEMOB,
    AppConfig,
    AuthConfig,
    ConfigEnvVarError,
    ConfigValidationError,
    EasemobConfig,
    HttpConfig,
    RateLimitConfig,
)
from easemob_push._errors import (
    ClientClosedError,
    EasemobError,
)
from easemob_push._http import (
    HttpClient,
    RequestsHttpClient,
)
from easemob_push._rate_limit import (
    AdmissionCancelledError,
    AdmissionTimeoutError,
    FixedWindowLimiter,
)
from easemob_push.push import (
    PushError,
    PushMessage,
    PushService,
    PushStrategy,
)

__all__ = [
    "__version__",
    # Client
    "EasemobClient",
    # Configuration
    "EASEMOB",
    "EasemobConfig",
    "AppConfig",
    "AuthConfig",
    "HttpConfig",
    "RateLimitConfig",
    "ConfigEnvVarError",
    "ConfigValidationError",
    # Authentication
    "TokenInfo",
    "AuthenticationError",
    # HTTP Client
    "HttpClient",
    "RequestsHttpClient",
    # Rate Limiting
    "FixedWindowLimiter",
    "AdmissionCancelledError",
    "AdmissionTimeoutError",
    # Errors
    "EasemobError",
    "ClientClosedError",
    # Push
    "PushService",
    "PushMessage",
    "PushStrategy",
    "PushError",
]
