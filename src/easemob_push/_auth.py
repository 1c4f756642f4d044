"""
Token management for the easemob_push SDK.

Easemob REST calls are authorized with an app token obtained by trading the
app's client credentials at `POST {base}/{org}/{app}/token`.

The main classes are:
- ClientCredentials: Performs the credential exchange.
- TokenCache: Holds the bearer token shared by all callers and refreshes it
  lazily when it is empty or expired.

Example:
    >>> from easemob_push._auth import ClientCredentials
    >>> credentials = ClientCredentials(client_id="YXA6...", client_secret="YXA6...")
    >>> token = credentials.exchange(http, url="https://a1.easemob.com/org/app/token")
    >>> token.access_token
    'YWMt...'
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import requests

from easemob_push._errors import EasemobError
from easemob_push._utils import ReadWriteLock

if TYPE_CHECKING:
    from easemob_push._http import HttpClient

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class AuthenticationError(EasemobError):
    """
    Raised when the credential exchange fails.

    The token cache is left untouched when this is raised: a still-valid token
    keeps being used, and an expired one is refreshed again on the next call.

    Attributes:
        message: Description of the authentication failure.
        cause: The underlying exception that caused the failure, if any.
        status_code: HTTP status of the token response, if one was received.
        body: Raw text of the token response, if one was received.

    Example:
        >>> try:
        ...     client.refresh_token()
        ... except AuthenticationError as e:
        ...     print(f"Auth failed ({e.status_code}): {e.body}")
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status_code = status_code
        self.body = body


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class TokenInfo:
    """
    Token with expiration metadata.

    Attributes:
        access_token: The bearer token.
        expires_at: Unix timestamp when the token expires, or None when the
            token never expires (issued with a TTL of 0).
        application: UUID of the app the token was issued for.
        valid_until: `time.monotonic()` deadline matching `expires_at`, fixed
            at creation so wall-clock jumps do not move it.
    """

    access_token: str
    expires_at: float | None
    application: str | None = None
    valid_until: float | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.expires_at is not None:
            object.__setattr__(self, "valid_until", time.monotonic() + (self.expires_at - time.time()))

    def is_valid(self, now: float | None = None) -> bool:
        """
        Check whether the token is non-empty and not yet expired.

        Args:
            now: Unix timestamp to check against. When None, the monotonic
                deadline is used.
        """
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        if now is not None:
            return now < self.expires_at
        return time.monotonic() < self.valid_until


# =============================================================================
# Credential Exchange
# =============================================================================


class ClientCredentials:
    """
    Client credentials grant against the Easemob token endpoint.

    Args:
        client_id: The app's client_id.
        client_secret: The app's client_secret.
    """

    GRANT_TYPE = "client_credentials"

    def __init__(self, client_id: str, client_secret: str):
        assert client_id, "client_id cannot be empty"
        assert client_secret, "client_secret cannot be empty"

        self._client_id = client_id
        self._client_secret = client_secret

    @property
    def client_id(self) -> str:
        return self._client_id

    def to_api_payload(self, ttl: int = 0) -> dict[str, Any]:
        """
        Build the token request body.

        Args:
            ttl: Requested token lifetime in seconds. 0 asks for a token that
                never expires.
        """
        assert ttl is not None and ttl >= 0, "ttl must be >= 0."
        return {
            "grant_type": self.GRANT_TYPE,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "ttl": ttl,
        }

    def exchange(self, http: HttpClient, url: str, ttl: int = 0) -> TokenInfo:
        """
        Trade the client credentials for a bearer token.

        Args:
            http: Unauthenticated transport to send the request with.
            url: Full URL of the token endpoint.
            ttl: Requested token lifetime in seconds (0 = never expires).

        Returns:
            TokenInfo with the new access token and expiration time.

        Raises:
            AuthenticationError: If the request fails, the server answers with a
                non-2xx status, or the response carries no usable token.
        """
        try:
            response = http.post(url, data=self.to_api_payload(ttl))
        except requests.RequestException as e:
            raise AuthenticationError(f"refresh token error: {e}", cause=e) from e

        if not 200 <= response.status_code < 300:
            raise AuthenticationError(
                f"refresh token error: HTTP {response.status_code}, {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AuthenticationError(
                f"refresh token error: invalid JSON response: {e}",
                cause=e, status_code=response.status_code, body=response.text,
            ) from e

        if not isinstance(data, dict):
            raise AuthenticationError(
                "refresh token error: unexpected response shape",
                status_code=response.status_code, body=response.text,
            )

        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token.strip():
            raise AuthenticationError(
                "refresh token error: access token is empty",
                status_code=response.status_code, body=response.text,
            )

        try:
            expires_in = int(data.get("expires_in") or 0)
        except (TypeError, ValueError) as e:
            raise AuthenticationError(
                f"refresh token error: invalid 'expires_in' value: {data.get('expires_in')!r}",
                cause=e, status_code=response.status_code, body=response.text,
            ) from e

        return TokenInfo(
            access_token=access_token,
            expires_at=None if expires_in <= 0 else time.time() + expires_in,
            application=data.get("application"),
        )


# =============================================================================
# Token Cache
# =============================================================================


# Signature of the refresh callback: (cancel, timeout) -> TokenInfo
TokenRefresher = Callable[[threading.Event | None, float | None], TokenInfo]


class TokenCache:
    """
    Bearer token shared by every caller of a client.

    State transitions:
        Empty -> (refresh ok) -> Valid -> (time passes expiry) -> Expired
        -> (refresh ok) -> Valid ...

    `ensure_valid()` checks the token under the shared lock and, when it is
    empty or expired, runs the refresh callback with NO lock held (it is a
    network call) and then installs the result under the exclusive lock.

    Concurrent callers that all see an expired token each run their own
    refresh; the last one to finish wins. A failed refresh leaves the cache
    as it was.

    Args:
        refresher: Callback performing the credential exchange.
        lock: Shared/exclusive guard. A private one is created if None.
    """

    def __init__(self, refresher: TokenRefresher, lock: ReadWriteLock | None = None):
        assert refresher is not None, "refresher cannot be None."

        self._refresher = refresher
        self._lock = lock or ReadWriteLock()
        self._token: TokenInfo | None = None

    def current_token(self) -> str:
        """Return the cached token string, or "" when there is none."""
        with self._lock.read():
            return self._token.access_token if self._token else ""

    @property
    def expires_at(self) -> float | None:
        with self._lock.read():
            return self._token.expires_at if self._token else None

    def is_valid(self) -> bool:
        with self._lock.read():
            return self._token is not None and self._token.is_valid()

    def ensure_valid(
        self,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Make sure a non-expired token is cached, refreshing it if needed.

        Raises:
            AuthenticationError: If a refresh was needed and failed.
            AdmissionCancelledError: If the refresh call could not get a permit.
        """
        if self.is_valid():
            return
        self.refresh(cancel=cancel, timeout=timeout)

    def refresh(
        self,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> TokenInfo:
        """Fetch a new token unconditionally and install it."""
        token = self._refresher(cancel, timeout)
        self.install(token)
        return token

    def install(self, token: TokenInfo) -> None:
        """Atomically replace the cached token."""
        assert token is not None, "token cannot be None."
        with self._lock.write():
            self._token = token

        expiry = "never" if token.expires_at is None else f"in {token.expires_at - time.time():.0f}s"
        logger.info(f"TokenCache: ✅ Access token refreshed (expires {expiry}).")
