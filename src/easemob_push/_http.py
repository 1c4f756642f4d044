"""
HTTP transport abstraction for the easemob_push SDK.

The client keeps one transport *template* and hands every caller a clone of
it, so per-request headers (e.g. the bearer token) never leak between threads
and a timeout reconfiguration never races with a request in flight.

Available implementations:
    - HttpClient: Abstract base class for transports.
    - RequestsHttpClient: Default implementation backed by `requests`.

Example:
    >>> from easemob_push._http import RequestsHttpClient
    >>> template = RequestsHttpClient(timeout=10)
    >>> handle = template.clone().with_header("Authorization", "Bearer abc")
    >>> response = handle.post("https://a1.easemob.com/org/app/push/single", data={...})
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Self, override

import requests

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


# =============================================================================
# Abstract Base Class
# =============================================================================


class HttpClient(ABC):
    """
    Abstract base class for HTTP transports.

    A transport carries a timeout and a set of default headers, can be
    cloned cheaply, and posts JSON bodies.

    Example:
        >>> class MyHttpClient(HttpClient):
        ...     def post(self, url, data=None, headers=None):
        ...         return requests.post(url, json=data, headers=headers, timeout=self.timeout)
        ...     def clone(self):
        ...         return MyHttpClient(timeout=self.timeout, headers=self.headers)
    """

    def __init__(
        self,
        timeout: float | None = 30.0,
        headers: dict[str, str] | None = None,
    ):
        assert timeout is None or timeout >= 0, "Timeout cannot be negative."

        # 0 and None both mean no timeout, which requests spells None
        self.timeout: float | None = timeout or None
        self.headers: dict[str, str] = dict(headers or {})

    @abstractmethod
    def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """
        Execute a POST request with a JSON body.

        Args:
            url: The full URL to request.
            data: JSON-serializable data to send in the request body.
            headers: Additional headers, merged over the transport's defaults.

        Returns:
            The HTTP response.

        Raises:
            requests.RequestException: If the HTTP request fails.
        """
        pass

    @abstractmethod
    def clone(self) -> Self:
        """Return an independent copy (headers are copied, not shared)."""
        pass

    def with_header(self, name: str, value: str) -> Self:
        """
        Set a default header on this transport and return it, for chaining.

        Call it on a clone, never on a shared template.
        """
        assert name, "Header name cannot be empty."
        self.headers[name] = value
        return self

    def with_timeout(self, timeout: float | None) -> Self:
        """Return a clone with a different timeout (0 or None = no timeout)."""
        assert timeout is None or timeout >= 0, "Timeout cannot be negative."
        copy = self.clone()
        copy.timeout = timeout or None
        return copy


# =============================================================================
# Requests Implementation
# =============================================================================


class RequestsHttpClient(HttpClient):
    """
    Transport backed by the `requests` library.

    Each call goes through the module-level `requests.post`, so clones share
    no connection state and are safe to use from different threads.

    Args:
        timeout: Request timeout in seconds. 0 or None disables it.
        headers: Default headers sent with every request.
    """

    @override
    def post(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        assert url, "URL cannot be empty."

        merged_headers = {**JSON_HEADERS, **self.headers, **(headers or {})}
        logger.debug(f"RequestsHttpClient: POST {url} (timeout={self.timeout}s)")

        return requests.post(
            url,
            json=data,
            headers=merged_headers,
            timeout=self.timeout,
        )

    @override
    def clone(self) -> "RequestsHttpClient":
        return RequestsHttpClient(timeout=self.timeout, headers=self.headers)

    def __repr__(self) -> str:
        # Header values may hold credentials, only names are shown
        return f"RequestsHttpClient(timeout={self.timeout!r}, headers={sorted(self.headers)!r})"
