"""
Push service for the Easemob push API.

This module provides a synchronous service sending notifications through a
shared EasemobClient, which takes care of rate limiting and authorization.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

import requests
from ulid import ULID

from easemob_push._client import EasemobClient
from easemob_push._errors import EasemobError
from easemob_push.push._models import (
    PushMessage,
    PushResponse,
    PushSingleResult,
    PushSyncResult,
    R,
    build_push_payload,
)

logger = logging.getLogger(__name__)


class PushError(EasemobError):
    """
    Exception raised when a push call fails.

    Raised for transport errors, non-2xx responses, malformed bodies and, for
    synchronous pushes, any channel result other than SUCCESS.

    Attributes:
        message: Human-readable error message.
        cause: The original exception that caused this error, if any.
        status_code: HTTP status of the response, if one was received.
        body: Raw text of the response, if one was received.
        push_status: The failing `pushStatus` reported by the server, if any.
        response: The decoded response, when it was well-formed.
        request_id: Client-side ID of the failed call.

    Example:
        >>> try:
        ...     service.push_sync(PushStrategy.EASEMOB_ONLY, "user-1", message)
        ... except PushError as e:
        ...     print(f"Push failed ({e.status_code}, {e.push_status}): {e}")
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        status_code: int | None = None,
        body: str | None = None,
        push_status: str | None = None,
        response: PushResponse[Any] | None = None,
        request_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status_code = status_code
        self.body = body
        self.push_status = push_status
        self.response = response
        self.request_id = request_id


class PushService:
    """
    Synchronous client for the Easemob push endpoints.

    Every call takes a permit from the client's rate limiter and a valid app
    token before going out. Admission errors (AdmissionCancelledError,
    AdmissionTimeoutError, ClientClosedError) and AuthenticationError are
    propagated unchanged.

    Each call is tagged with a request ID (a ULID unless the caller passes
    one) that prefixes its log lines and is returned in the response.

    Example:
        >>> from easemob_push import EasemobClient
        >>> from easemob_push.push import PushMessage, PushService, PushStrategy
        >>> with EasemobClient("a1.easemob.com", "1122", "demo", "YXA6...", "YXA6...") as client:
        ...     service = PushService(client)
        ...     response = service.push_single(
        ...         PushStrategy.THIRD_PARTY_FIRST,
        ...         targets=["user-1", "user-2"],
        ...         message=PushMessage(title="Hello", content="World"),
        ...     )

    Attributes:
        client: The shared EasemobClient.
    """

    MAX_TARGETS = 100

    def __init__(self, client: EasemobClient):
        assert client is not None, "PushService client cannot be None."
        self.client = client

    def push_sync(
        self,
        strategy: int,
        target: str,
        message: PushMessage,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
        request_id: str | None = None,
    ) -> PushResponse[PushSyncResult]:
        """
        Push a notification to a single user and wait for the delivery result.

        Args:
            strategy: Delivery strategy (see PushStrategy).
            target: Username of the receiver.
            message: The notification.
            cancel: Event that aborts the permit wait when set.
            timeout: Maximum seconds to wait for admission.
            request_id: ID used to correlate log lines. Generated if None.

        Returns:
            PushResponse with one PushSyncResult per delivery channel.

        Raises:
            PushError: If the target is not a single path segment, the call
                failed or any channel did not report SUCCESS.
        """
        assert target, "🌀 Sanity check | Push target can not be empty."
        assert message is not None, "🌀 Sanity check | Push message can not be None."

        request_id = request_id or str(ULID())
        # The target is one path segment of push/sync/{target}
        if "/" in target or target in (".", ".."):
            raise PushError(f"push sync error: invalid target {target!r}", request_id=request_id)

        logger.info(f"{request_id[:26]:<26} | PushSync | Pushing notification to '{target}'...")

        body = self._post(
            request_id=request_id,
            operation="push sync",
            sub_path=f"push/sync/{target}",
            payload=build_push_payload(strategy, message),
            cancel=cancel,
            timeout=timeout,
        )
        response = self._build_response(request_id, "push sync", body, PushSyncResult.from_api)

        for result in response.data:
            if not result.is_success():
                logger.warning(
                    f"{request_id[:26]:<26} | PushSync | ❌ Channel reported {result.push_status} ({result.result})."
                )
                raise PushError(
                    f"push sync error: {result.push_status}",
                    push_status=result.push_status,
                    response=response,
                    request_id=request_id,
                )

        logger.info(f"{request_id[:26]:<26} | PushSync | ✅ Notification delivered ({len(response.data)} channel(s)).")
        return response

    def push_single(
        self,
        strategy: int,
        targets: list[str],
        message: PushMessage,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
        request_id: str | None = None,
    ) -> PushResponse[PushSingleResult]:
        """
        Push a notification to up to 100 users (asynchronous delivery).

        The target count is checked before any permit is taken.

        Args:
            strategy: Delivery strategy (see PushStrategy).
            targets: Usernames of the receivers (1 to 100).
            message: The notification.
            cancel: Event that aborts the permit wait when set.
            timeout: Maximum seconds to wait for admission.
            request_id: ID used to correlate log lines. Generated if None.

        Returns:
            PushResponse with one PushSingleResult per accepted push.

        Raises:
            PushError: If there are more than 100 targets or the call failed.
        """
        assert targets, "🌀 Sanity check | Push targets can not be empty."
        assert message is not None, "🌀 Sanity check | Push message can not be None."

        request_id = request_id or str(ULID())
        if len(targets) > self.MAX_TARGETS:
            raise PushError(
                f"push single error: targets length {len(targets)} > {self.MAX_TARGETS}",
                request_id=request_id,
            )

        logger.info(f"{request_id[:26]:<26} | PushSingle | Pushing notification to {len(targets)} target(s)...")

        body = self._post(
            request_id=request_id,
            operation="push single",
            sub_path="push/single",
            payload=build_push_payload(strategy, message, targets=targets),
            cancel=cancel,
            timeout=timeout,
        )
        response = self._build_response(request_id, "push single", body, PushSingleResult.from_api)

        logger.info(f"{request_id[:26]:<26} | PushSingle | ✅ Notification accepted for {len(targets)} target(s).")
        return response

    def _post(
        self,
        request_id: str,
        operation: str,
        sub_path: str,
        payload: dict[str, Any],
        cancel: threading.Event | None,
        timeout: float | None,
    ) -> dict[str, Any]:
        """
        Send an authorized POST and return the decoded JSON body.

        Raises:
            PushError: On transport errors, non-2xx statuses or malformed bodies.
        """
        http = self.client.acquire_authorized(cancel=cancel, timeout=timeout)
        url = self.client.get_url(sub_path)

        try:
            response = http.post(url, data=payload)
        except requests.RequestException as e:
            logger.error(
                f"{request_id[:26]:<26} | Push | ❌ {operation} error: {e}",
                exc_info=logger.isEnabledFor(logging.DEBUG)
            )
            raise PushError(f"{operation} error: {e}", cause=e, request_id=request_id) from e

        if not 200 <= response.status_code < 300:
            logger.error(f"{request_id[:26]:<26} | Push | ❌ {operation} error: HTTP {response.status_code}")
            raise PushError(
                f"{operation} error: HTTP {response.status_code}, {response.text}",
                status_code=response.status_code,
                body=response.text,
                request_id=request_id,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise PushError(
                f"{operation} error: invalid JSON response: {e}",
                cause=e, status_code=response.status_code, body=response.text, request_id=request_id,
            ) from e

        if not isinstance(body, dict):
            raise PushError(
                f"{operation} error: unexpected response shape",
                status_code=response.status_code, body=response.text, request_id=request_id,
            )
        return body

    def _build_response(
        self,
        request_id: str,
        operation: str,
        body: dict[str, Any],
        from_api: Callable[[dict[str, Any]], R],
    ) -> PushResponse[R]:
        try:
            return PushResponse(
                timestamp=int(body.get("timestamp") or 0),
                duration=int(body.get("duration") or 0),
                data=[from_api(item) for item in self._data_items(body)],
                request_id=request_id,
                raw_response=body,
            )
        except (TypeError, ValueError) as e:
            raise PushError(
                f"{operation} error: invalid response envelope: {e}",
                cause=e, request_id=request_id,
            ) from e

    @staticmethod
    def _data_items(body: dict[str, Any]) -> list[dict[str, Any]]:
        items = body.get("data") or []
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]
