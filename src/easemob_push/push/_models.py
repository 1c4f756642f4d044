"""
Data models for the Easemob push endpoints.

This module contains the data classes used to build push requests and to
represent the responses of the push API.

See https://doc.easemob.com/push/push_send_notification.html for the
meaning of each field.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Generic, TypeVar


class PushStrategy(IntEnum):
    """
    Delivery channel strategy of a push request.

    Attributes:
        THIRD_PARTY_FIRST: Vendor channel first, Easemob channel on failure.
        EASEMOB_ONLY: Easemob channel only.
        THIRD_PARTY_ONLY: Vendor channel only.
        EASEMOB_FIRST: Easemob channel when online, vendor channel when offline.
        EASEMOB_ONLINE_ONLY: Easemob channel, online devices only.
    """
    THIRD_PARTY_FIRST = 0
    EASEMOB_ONLY = 1
    THIRD_PARTY_ONLY = 2
    EASEMOB_FIRST = 3
    EASEMOB_ONLINE_ONLY = 4


@dataclass(frozen=True)
class ClickAction:
    """
    Action triggered when the user taps the notification (Android, iOS).

    The Easemob iOS channel only supports `url`.

    Attributes:
        url: Custom URL to open.
        action: App page to open.
        activity: Package name or Activity path to open. The app home page
            is opened when empty.
    """
    url: str | None = None
    action: str | None = None
    activity: str | None = None

    def to_api_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.url:
            payload["url"] = self.url
        if self.action:
            payload["action"] = self.action
        if self.activity:
            payload["activity"] = self.activity
        return payload


@dataclass(frozen=True)
class Badge:
    """
    App icon badge settings (Android).

    Attributes:
        add_num: Value added to the badge when the notification arrives.
        set_num: Value the badge is set to when the notification arrives.
        activity: Entry class (required by Huawei badges).
    """
    add_num: int | None = None
    set_num: int | None = None
    activity: str | None = None

    def to_api_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.add_num:
            payload["addNum"] = self.add_num
        if self.set_num:
            payload["setNum"] = self.set_num
        if self.activity:
            payload["activity"] = self.activity
        return payload


@dataclass(frozen=True)
class PushConfig:
    """Tap action and badge settings of a notification."""
    click_action: ClickAction | None = None
    badge: Badge | None = None

    def to_api_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.click_action is not None:
            payload["clickAction"] = self.click_action.to_api_payload()
        if self.badge is not None:
            payload["badge"] = self.badge.to_api_payload()
        return payload


@dataclass(frozen=True)
class PushMessage:
    """
    Notification shown on the device.

    Attributes:
        title: Notification title (at most 32 characters, a CJK character
            counting as two). The server shows a default title when empty.
        content: Notification body (at most 100 characters, same counting).
        ext: Custom key-value pairs (at most 10 pairs, 1024 characters).
        config: Tap action and badge settings.

    Example:
        >>> message = PushMessage(
        ...     title="New order",
        ...     content="Order #1024 was shipped",
        ...     ext={"order_id": "1024"},
        ...     config=PushConfig(click_action=ClickAction(url="https://example.com/orders/1024")),
        ... )
    """
    title: str = ""
    content: str = ""
    ext: dict[str, Any] | None = None
    config: PushConfig | None = None

    def to_api_payload(self) -> dict[str, Any]:
        """
        Converts the message to the API payload format.

        Returns:
            Dictionary formatted for the `pushMessage` field of the push API.
        """
        payload: dict[str, Any] = {
            "title": self.title,
            "content": self.content,
        }
        if self.ext:
            payload["ext"] = self.ext
        if self.config is not None:
            payload["config"] = self.config.to_api_payload()
        return payload


def build_push_payload(
    strategy: int,
    message: PushMessage,
    targets: list[str] | None = None,
) -> dict[str, Any]:
    """Build the common body of the push endpoints."""
    payload: dict[str, Any] = {}
    if targets:
        payload["targets"] = list(targets)
    payload["strategy"] = int(strategy)
    payload["pushMessage"] = message.to_api_payload()
    return payload


# =============================================================================
# Responses
# =============================================================================


@dataclass(frozen=True)
class PushSyncResult:
    """
    Outcome of a synchronous push for one device channel.

    Attributes:
        push_status: SUCCESS, FAIL or ERROR.
        result: Result reported by the delivery channel.
        msg_ids: IDs of the messages sent.
    """
    push_status: str
    result: str | None = None
    msg_ids: list[str] = field(default_factory=list)

    SUCCESS = "SUCCESS"

    def is_success(self) -> bool:
        return self.push_status == self.SUCCESS

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PushSyncResult":
        inner = data.get("data")
        if not isinstance(inner, dict):
            inner = {}

        msg_ids = inner.get("msg_id") or []
        if not isinstance(msg_ids, list):
            msg_ids = [msg_ids]

        return cls(
            push_status=str(data.get("pushStatus") or ""),
            result=inner.get("result"),
            msg_ids=[str(msg_id) for msg_id in msg_ids],
        )


@dataclass(frozen=True)
class PushSingleResult:
    """
    Outcome of an asynchronous batch push.

    Attributes:
        push_status: ASYNC_SUCCESS when the push was accepted.
        data: Asynchronous result (success or failure).
        desc: Description of the result.
    """
    push_status: str
    data: str | None = None
    desc: str | None = None

    ASYNC_SUCCESS = "ASYNC_SUCCESS"

    def is_success(self) -> bool:
        return self.push_status == self.ASYNC_SUCCESS

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PushSingleResult":
        return cls(
            push_status=str(data.get("pushStatus") or ""),
            data=data.get("data"),
            desc=data.get("desc"),
        )


R = TypeVar("R", PushSyncResult, PushSingleResult)


@dataclass(frozen=True)
class PushResponse(Generic[R]):
    """
    Response envelope shared by the push endpoints.

    Attributes:
        timestamp: Unix timestamp of the response, in milliseconds.
        duration: Time from request to response, in milliseconds.
        data: One result per delivery channel / target.
        request_id: Client-side ID of the call (ULID), as seen in the logs.
        raw_response: The decoded JSON body, as received.
    """
    timestamp: int
    duration: int
    data: list[R]
    request_id: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict, repr=False)
