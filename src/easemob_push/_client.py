"""
Shared Easemob REST client.

`EasemobClient` is the request-execution substrate every endpoint goes
through. One instance is meant to be shared by all worker threads:

- every request first takes a permit from a fixed-window rate limiter,
- authenticated requests then make sure the cached app token is valid,
  refreshing it through the token endpoint when it is empty or expired,
- the caller gets a private clone of the transport template, with the
  bearer token attached when asked for.

All mutable state (transport template, token, limiter) is guarded by a
single shared/exclusive lock. Reads take it in shared mode; `set_limiter`,
`set_client_timeout`, token installation and `close` take it exclusively.
Blocking waits (permits, token refresh round trips) never hold it.

Example:
    >>> from easemob_push import EasemobClient
    >>> with EasemobClient("a1.easemob.com", "1122", "demo", "YXA6...", "YXA6...") as client:
    ...     http = client.acquire_authorized(timeout=10)
    ...     response = http.post(client.get_url("push/single"), data={...})
"""

from __future__ import annotations

import logging
import posixpath
import threading
from typing import TYPE_CHECKING, Self
from urllib.parse import quote

from easemob_push._auth import ClientCredentials, TokenCache, TokenInfo
from easemob_push._http import HttpClient, RequestsHttpClient
from easemob_push._rate_limit import FixedWindowLimiter
from easemob_push._utils import ReadWriteLock, deadline_from_timeout, remaining_time

if TYPE_CHECKING:
    from easemob_push._config import EasemobConfig

logger = logging.getLogger(__name__)


class EasemobClient:
    """
    Thread-safe client owning the rate limiter, the app token and the transport.

    Access modes of the public operations on the shared lock:
        - shared: `get_url`, `acquire_unauthorized`, `acquire_authorized`
          (for cloning the template and reading the token),
          `current_token`, `request_timeout`, `rate`, `interval`.
        - exclusive: `set_limiter`, `set_client_timeout`, `close`, and the
          commit step of a token refresh.

    Every successfully constructed client owns a background reset-clock
    thread and must be closed exactly once, either with `close()` or by
    using the client as a context manager.

    Args:
        host: REST API host assigned to the app (e.g. "a1.easemob.com") or a
            full base URL. A bare host is served over https.
        org_name: Organization name.
        app_name: App name.
        client_id: The app's client_id.
        client_secret: The app's client_secret.
        rate: Requests admitted per window (>= 0).
        interval: Window length in seconds (>= 0).
        request_timeout: HTTP timeout in seconds for every request (0 = none).
        token_ttl: Lifetime requested for refreshed tokens (0 = never expires).
        max_wait_time: Default seconds to wait for a permit when a call does
            not pass its own timeout. None waits indefinitely.
        http_client: Transport template. Defaults to RequestsHttpClient.

    Raises:
        ValueError: If any of the five identifiers is empty, or rate/interval
            is negative.
    """

    DEFAULT_RATE = 1
    DEFAULT_INTERVAL = 1.0
    DEFAULT_REQUEST_TIMEOUT = 30.0

    def __init__(
        self,
        host: str,
        org_name: str,
        app_name: str,
        client_id: str,
        client_secret: str,
        *,
        rate: int = DEFAULT_RATE,
        interval: float = DEFAULT_INTERVAL,
        request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT,
        token_ttl: int = 0,
        max_wait_time: float | None = None,
        http_client: HttpClient | None = None,
    ):
        required = {
            "host": host,
            "org_name": org_name,
            "app_name": app_name,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        if missing := [name for name, value in required.items() if not value]:
            raise ValueError(f"invalid params: {', '.join(missing)} cannot be empty.")
        if token_ttl is None or token_ttl < 0:
            raise ValueError(f"token_ttl must be >= 0 (got {token_ttl!r}).")
        if max_wait_time is not None and max_wait_time <= 0:
            raise ValueError(f"max_wait_time must be > 0 or None (got {max_wait_time!r}).")

        self._lock = ReadWriteLock()
        self._base_url = self._to_base_url(host)
        self._org_name = org_name.strip("/")
        self._app_name = app_name.strip("/")
        self._credentials = ClientCredentials(client_id=client_id, client_secret=client_secret)
        self._token_ttl = token_ttl
        self._max_wait_time = max_wait_time
        self._http: HttpClient = http_client or RequestsHttpClient(timeout=request_timeout)
        self._tokens = TokenCache(refresher=self._exchange_credentials, lock=self._lock)
        # Started last: nothing is left running if an earlier step fails
        self._limiter = FixedWindowLimiter(rate=rate, interval=interval, lock=self._lock)

        logger.debug(
            f"EasemobClient: created for '{self._org_name}/{self._app_name}' at {self._base_url} "
            f"(rate={rate}, interval={interval}s, timeout={self._http.timeout}s)."
        )

    @classmethod
    def from_config(cls, config: EasemobConfig | None = None) -> EasemobClient:
        """
        Create a client from configuration.

        Args:
            config: Optional EasemobConfig. If None, uses the global
                EASEMOB.config (defaults + env vars + configure()).

        Raises:
            ValueError: If the app coordinates or the credentials are not configured.

        Example:
            >>> from easemob_push import EASEMOB, EasemobClient
            >>> EASEMOB.configure(
            ...     app={"host": "a1.easemob.com", "org_name": "1122", "app_name": "demo"},
            ...     auth={"client_id": "x", "client_secret": "y"},
            ... )
            >>> client = EasemobClient.from_config()
        """
        if config is None:
            from easemob_push._config import EASEMOB

            config = EASEMOB.config

        if not config.app.is_complete():
            raise ValueError(
                "App not configured. "
                "Set host, org_name and app_name via EASEMOB.configure(app={...}) or environment variables "
                "(EASEMOB_APP_HOST, EASEMOB_APP_ORG_NAME, EASEMOB_APP_APP_NAME)."
            )
        if not config.auth.has_credentials():
            raise ValueError(
                "Client credentials not configured. "
                "Set client_id and client_secret via EASEMOB.configure(auth={...}) or environment variables "
                "(EASEMOB_AUTH_CLIENT_ID, EASEMOB_AUTH_CLIENT_SECRET)."
            )

        return cls(
            host=config.app.host,  # type: ignore[arg-type]
            org_name=config.app.org_name,  # type: ignore[arg-type]
            app_name=config.app.app_name,  # type: ignore[arg-type]
            client_id=config.auth.client_id,  # type: ignore[arg-type]
            client_secret=config.auth.client_secret,  # type: ignore[arg-type]
            rate=config.rate_limit.rate,
            interval=config.rate_limit.interval,
            request_timeout=config.http.request_timeout,
            token_ttl=config.auth.token_ttl,
            max_wait_time=config.rate_limit.max_wait_time,
        )

    @staticmethod
    def _to_base_url(host: str) -> str:
        host = host.strip().rstrip("/")
        if "://" not in host:
            host = f"https://{host}"
        return host

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def org_name(self) -> str:
        return self._org_name

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def rate(self) -> int:
        return self._limiter.rate

    @property
    def interval(self) -> float:
        return self._limiter.interval

    @property
    def request_timeout(self) -> float | None:
        with self._lock.read():
            return self._http.timeout

    @property
    def closed(self) -> bool:
        return self._limiter.closed

    def current_token(self) -> str:
        """Return the cached app token, or "" when none was fetched yet."""
        return self._tokens.current_token()

    @property
    def token_expires_at(self) -> float | None:
        """Unix timestamp when the cached token expires (None = never or no token)."""
        return self._tokens.expires_at

    def get_url(self, sub_path: str = "") -> str:
        """
        Build the full URL of an app-scoped endpoint.

        Segments are joined as `{base}/{org}/{app}/{sub_path}`, cleaned the
        way a filesystem path is, and percent-encoded.

        Example:
            >>> client.get_url("push/sync/user-1")
            'https://a1.easemob.com/1122/demo/push/sync/user-1'
        """
        with self._lock.read():
            joined = posixpath.normpath(posixpath.join(self._org_name, self._app_name, sub_path.lstrip("/")))
        segments = [quote(segment) for segment in joined.split("/") if segment and segment != "."]
        return f"{self._base_url}/{'/'.join(segments)}"

    # -------------------------------------------------------------------------
    # Request factory
    # -------------------------------------------------------------------------

    def _resolve_timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._max_wait_time

    def acquire_unauthorized(
        self,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> HttpClient:
        """
        Take a permit and return a transport clone with no credentials.

        Used by the token refresh itself, which must not require a token.

        Args:
            cancel: Event that aborts the permit wait when set.
            timeout: Maximum seconds to wait for a permit. Defaults to
                the client's `max_wait_time`.

        Raises:
            AdmissionCancelledError: If `cancel` fired while waiting.
            AdmissionTimeoutError: If `timeout` elapsed while waiting.
            ClientClosedError: If the client is closed.
        """
        self._limiter.acquire(cancel=cancel, timeout=self._resolve_timeout(timeout))
        with self._lock.read():
            return self._http.clone()

    def acquire_authorized(
        self,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> HttpClient:
        """
        Take a permit, make sure the app token is valid and return a transport
        clone carrying `Authorization: Bearer <token>`.

        When the token must be refreshed, the refresh call takes a permit of
        its own. `timeout` bounds the whole operation, both waits included.

        Raises:
            AdmissionCancelledError: If `cancel` fired while waiting.
            AdmissionTimeoutError: If `timeout` elapsed while waiting.
            AuthenticationError: If the token had to be refreshed and that failed.
            ClientClosedError: If the client is closed.
        """
        deadline = deadline_from_timeout(self._resolve_timeout(timeout))

        self._limiter.acquire(cancel=cancel, timeout=remaining_time(deadline))
        self._tokens.ensure_valid(cancel=cancel, timeout=remaining_time(deadline))

        token = self._tokens.current_token()
        with self._lock.read():
            http = self._http.clone()
        return http.with_header("Authorization", f"Bearer {token}")

    # -------------------------------------------------------------------------
    # Token refresh
    # -------------------------------------------------------------------------

    def _exchange_credentials(
        self,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
        ttl: int | None = None,
    ) -> TokenInfo:
        http = self.acquire_unauthorized(cancel=cancel, timeout=timeout)
        return self._credentials.exchange(
            http,
            url=self.get_url("token"),
            ttl=self._token_ttl if ttl is None else ttl,
        )

    def refresh_token(
        self,
        ttl: int | None = None,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> TokenInfo:
        """
        Fetch a new app token now and cache it.

        Args:
            ttl: Requested lifetime in seconds (0 = never expires). Defaults
                to the client's `token_ttl`.
            cancel: Event that aborts the permit wait when set.
            timeout: Maximum seconds to wait for a permit.

        Returns:
            The installed TokenInfo.

        Raises:
            AuthenticationError: If the exchange failed. The cache is unchanged.
        """
        assert ttl is None or ttl >= 0, "ttl must be >= 0 or None."

        token = self._exchange_credentials(
            cancel=cancel,
            timeout=self._resolve_timeout(timeout),
            ttl=ttl,
        )
        self._tokens.install(token)
        return token

    # -------------------------------------------------------------------------
    # Reconfiguration & lifecycle
    # -------------------------------------------------------------------------

    def set_limiter(self, rate: int, interval: float) -> None:
        """
        Replace the rate limit with `rate` requests per `interval` seconds.

        Takes effect immediately: the current window is discarded and a new
        one starts. Safe to call while requests are in flight.

        Raises:
            ValueError: If rate or interval is negative.
            ClientClosedError: If the client is closed.
        """
        self._limiter.reconfigure(rate=rate, interval=interval)
        logger.info(f"EasemobClient: rate limit set to {rate} request(s) per {interval}s.")

    def set_client_timeout(self, timeout: float | None) -> None:
        """
        Replace the HTTP timeout used by every request acquired from now on.

        A timeout of 0 (or None) disables it: requests wait for the server
        indefinitely.

        Transports already handed out keep the timeout they were cloned with.
        """
        with self._lock.write():
            self._http = self._http.with_timeout(timeout)
        logger.debug(f"EasemobClient: HTTP timeout set to {timeout}s.")

    def close(self) -> None:
        """
        Stop the reset clock and release the limiter. Call exactly once.

        Threads waiting for a permit are woken and get ClientClosedError.

        Raises:
            ClientClosedError: If the client was already closed.
        """
        self._limiter.close()
        logger.debug(f"EasemobClient: closed ('{self._org_name}/{self._app_name}').")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"EasemobClient(base_url={self._base_url!r}, org_name={self._org_name!r}, "
            f"app_name={self._app_name!r}, client_id={self._credentials.client_id!r})"
        )
