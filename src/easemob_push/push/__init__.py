"""
Push module for the Easemob push API.

This module provides the push endpoints built on top of a shared
EasemobClient.

Example:
    >>> from easemob_push import EasemobClient
    >>> from easemob_push.push import PushMessage, PushService, PushStrategy
    >>> client = EasemobClient("a1.easemob.com", "1122", "demo", "YXA6...", "YXA6...")
    >>> service = PushService(client)
    >>> response = service.push_sync(
    ...     PushStrategy.EASEMOB_ONLY,
    ...     target="user-1",
    ...     message=PushMessage(title="Hello", content="World"),
    ... )
    >>> print(response.data[0].msg_ids)
    >>> client.close()
"""

from easemob_push.push._models import (
    Badge,
    ClickAction,
    PushConfig,
    PushMessage,
    PushResponse,
    PushSingleResult,
    PushStrategy,
    PushSyncResult,
)
from easemob_push.push._push import (
    PushError,
    PushService,
)

__all__ = [
    # Main client
    "PushService",
    # Request models
    "PushStrategy",
    "PushMessage",
    "PushConfig",
    "ClickAction",
    "Badge",
    # Response models
    "PushResponse",
    "PushSyncResult",
    "PushSingleResult",
    # Exceptions
    "PushError",
]
