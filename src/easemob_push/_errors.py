"""
Base exceptions for the easemob_push SDK.

Component-specific exceptions live next to the component that raises them
(`_rate_limit`, `_auth`, `push`) and all extend `EasemobError`, so callers can
catch every SDK failure with a single `except` clause.
"""


class EasemobError(Exception):
    """
    Base class for all errors raised by the easemob_push SDK.

    Configuration errors are the exception: they extend `ValueError`
    (see `ConfigEnvVarError` and `ConfigValidationError`).

    Example:
        >>> try:
        ...     service.push_sync(PushStrategy.EASEMOB_ONLY, "user-1", message)
        ... except EasemobError as e:
        ...     print(f"Push failed: {e}")
    """

    pass


class ClientClosedError(EasemobError):
    """
    Raised when an operation is attempted on a client that was already closed.

    Also raised by a second call to `close()`: every successfully constructed
    client must be closed exactly once.
    """

    pass
