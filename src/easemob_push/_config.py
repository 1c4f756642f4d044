"""
Global configuration for the easemob_push SDK.

Users can optionally call EASEMOB.configure() at application startup to set
the app coordinates and credentials. If not called, defaults and environment
variables are used.

Hierarchy of precedence (highest to lowest):
1. Arguments passed to EasemobClient
2. Values set via EASEMOB.configure()
3. Environment variables (EASEMOB_*) - when allow_env_override=True
4. Hardcoded defaults (in dataclass fields)

Example:
    >>> from easemob_push import EASEMOB
    >>>
    >>> # Pre-loaded with defaults + env vars
    >>> timeout = EASEMOB.config.http.request_timeout
    >>>
    >>> # Custom configuration
    >>> EASEMOB.configure(
    ...     app={"host": "a1.easemob.com", "org_name": "1122", "app_name": "demo"},
    ...     auth={"client_id": "x", "client_secret": "y"},
    ...     rate_limit={"rate": 1, "interval": 1.0},
    ... )
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Any, Self

_NONE_STRINGS = ("none", "null", "unlimited")


# =============================================================================
# Exceptions
# =============================================================================


class ConfigEnvVarError(ValueError):
    """Raised when an environment variable has an invalid value."""

    def __init__(
        self,
        env_var: str,
        value: str,
        expected_type: str,
        cause: Exception | None = None,
    ):
        self.env_var = env_var
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Invalid value for {env_var}: '{value}' (expected {expected_type})")
        self.__cause__ = cause


class ConfigValidationError(ValueError):
    """Raised when a configuration value fails validation."""

    def __init__(
        self,
        field: str,
        value: Any,
        message: str,
        section: str | None = None,
    ):
        self.field = field
        self.value = value
        self.section = section
        prefix = f"[{section}] " if section else ""
        super().__init__(f"{prefix}Invalid value for '{field}': {value!r}. {message}")


# =============================================================================
# Environment Variables
# =============================================================================


class EnvVars:
    """
    Utility class for reading environment variables with type conversion.

    Example:
        >>> EnvVars.get("EASEMOB_HTTP_REQUEST_TIMEOUT", type_hint=float)
        30.0
        >>> EnvVars.get("UNDEFINED_VAR")
        None
    """

    @staticmethod
    def get(
        var_name: str,
        type_hint: Any = str,
        converter: Callable[[str], Any] | None = None,
    ) -> Any:
        """
        Read an environment variable with optional type conversion.

        Args:
            var_name: The environment variable name.
            type_hint: Type hint used to infer the converter (ignored if converter is provided).
            converter: Custom converter function (takes precedence over type_hint).

        Returns:
            The converted value, or None if env var is not set/empty.

        Raises:
            ConfigEnvVarError: If the value cannot be converted.
        """
        raw_value = os.environ.get(var_name)
        if not raw_value:
            return None

        actual_converter = converter or EnvVars._infer_converter(type_hint)
        try:
            return actual_converter(raw_value)
        except (ValueError, TypeError) as e:
            raise ConfigEnvVarError(
                env_var=var_name,
                value=raw_value,
                expected_type=type_hint.__name__ if hasattr(type_hint, "__name__") else str(type_hint),
                cause=e,
            ) from e

    @staticmethod
    def _infer_converter(type_hint: Any) -> Callable[[str], Any]:
        """
        Infer converter function from type hint.

        Handles both actual types and string annotations (PEP 563).
        """
        type_str = str(type_hint)

        if type_hint is int or type_str == "int":
            return int
        if type_hint is float or type_str == "float":
            return float
        if type_hint is bool or type_str == "bool":
            return lambda v: v.lower() in ("true", "1", "yes")
        return str


def _optional_float(value: str) -> float | None:
    """Parse a float, mapping "none"/"null"/"unlimited" to None."""
    if value.lower() in _NONE_STRINGS:
        return None
    return float(value)


# =============================================================================
# Base Class
# =============================================================================


@dataclass(frozen=True)
class OverridableConfig:
    """
    Base class for immutable configuration dataclasses.

    Provides `.with_overrides()` for creating new instances with partial
    field updates. Unknown field names are rejected to catch typos early.

    Example:
        >>> config = HttpConfig()
        >>> custom = config.with_overrides({"request_timeout": 10})
        >>> custom.request_timeout
        10
    """

    def with_overrides(
        self,
        overrides: dict[str, Any],
        allow_none_fields: set[str] | None = None,
    ) -> Self:
        """
        Return a new instance with specified fields overridden.

        Args:
            overrides: Dict of field names to new values.
            allow_none_fields: Field names that accept None as a real value.
                By default, None values are filtered out.

        Raises:
            ValueError: If overrides contains unknown field names.
        """
        if not overrides:
            return self

        valid_fields = {f.name for f in fields(self)}
        invalid_fields = set(overrides.keys()) - valid_fields

        if invalid_fields:
            raise ValueError(
                f"Unknown config fields: {invalid_fields}. "
                f"Valid fields are: {valid_fields}"
            )

        allow_none = allow_none_fields or set()
        filtered = {k: v for k, v in overrides.items() if v is not None or k in allow_none}
        return replace(self, **filtered) if filtered else self

    def with_env_vars(self) -> Self:
        """
        Return new instance with environment variables applied.

        Reads env vars declared in field metadata and applies them as overrides.

        Raises:
            ConfigEnvVarError: If an env var has an invalid value.
        """
        overrides: dict[str, Any] = {}
        allow_none: set[str] = set()
        for f in fields(self):
            env_var = f.metadata.get("env")
            if not env_var or not os.environ.get(env_var):
                continue
            value = EnvVars.get(
                var_name=env_var,
                type_hint=f.type,
                converter=f.metadata.get("converter"),
            )
            overrides[f.name] = value
            if value is None:
                allow_none.add(f.name)
        return self.with_overrides(overrides, allow_none_fields=allow_none)


def _require_http_url_or_host(value: str | None, field_name: str, section: str) -> None:
    if value is None:
        return
    if not value.strip():
        raise ConfigValidationError(field_name, value, "Must not be empty string.", section=section)
    if "://" in value and not value.startswith(("http://", "https://")):
        raise ConfigValidationError(
            field_name, value,
            "Must be a bare host or start with 'http://' or 'https://'.", section=section
        )


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class AppConfig(OverridableConfig):
    """
    Coordinates of the Easemob app.

    Attributes:
        host: REST API host assigned to the app (e.g. "a1.easemob.com").
            A bare host is served over https.
            Env var: EASEMOB_APP_HOST

        org_name: Organization name.
            Env var: EASEMOB_APP_ORG_NAME

        app_name: App name.
            Env var: EASEMOB_APP_APP_NAME
    """

    host: str | None = field(default=None, metadata={"env": "EASEMOB_APP_HOST"})
    org_name: str | None = field(default=None, metadata={"env": "EASEMOB_APP_ORG_NAME"})
    app_name: str | None = field(default=None, metadata={"env": "EASEMOB_APP_APP_NAME"})

    def is_complete(self) -> bool:
        """Check if host, org_name and app_name are all set."""
        return bool(self.host and self.org_name and self.app_name)

    def validate(self) -> Self:
        """Validate app configuration fields."""
        _require_http_url_or_host(self.host, "host", "app")
        for name in ("org_name", "app_name"):
            value = getattr(self, name)
            if value is not None and not value.strip():
                raise ConfigValidationError(name, value, "Must not be empty string.", section="app")
            if value is not None and "/" in value:
                raise ConfigValidationError(name, value, "Must not contain '/'.", section="app")
        return self


@dataclass(frozen=True)
class AuthConfig(OverridableConfig):
    """
    App credentials used for the client credentials token exchange.

    Attributes:
        client_id: The app's client_id.
            Env var: EASEMOB_AUTH_CLIENT_ID

        client_secret: The app's client_secret.
            Env var: EASEMOB_AUTH_CLIENT_SECRET

        token_ttl: Lifetime requested for new tokens, in seconds.
            0 asks for a token that never expires.
            Env var: EASEMOB_AUTH_TOKEN_TTL
    """

    client_id: str | None = field(default=None, metadata={"env": "EASEMOB_AUTH_CLIENT_ID"})
    client_secret: str | None = field(default=None, repr=False, metadata={"env": "EASEMOB_AUTH_CLIENT_SECRET"})
    token_ttl: int = field(default=0, metadata={"env": "EASEMOB_AUTH_TOKEN_TTL"})

    def has_credentials(self) -> bool:
        """Check if both client_id and client_secret are set."""
        return bool(self.client_id and self.client_secret)

    def validate(self) -> Self:
        """Validate auth configuration fields."""
        if self.client_id is not None and self.client_id == "":
            raise ConfigValidationError(
                "client_id", self.client_id,
                "Must not be empty string.", section="auth"
            )
        if self.client_secret is not None and self.client_secret == "":
            raise ConfigValidationError(
                "client_secret", self.client_secret,
                "Must not be empty string.", section="auth"
            )
        if self.token_ttl < 0:
            raise ConfigValidationError(
                "token_ttl", self.token_ttl,
                "Must be >= 0 (0 = never expires).", section="auth"
            )
        return self


@dataclass(frozen=True)
class HttpConfig(OverridableConfig):
    """
    Transport configuration.

    Attributes:
        request_timeout: HTTP request timeout in seconds (0 = no timeout).
            Env var: EASEMOB_HTTP_REQUEST_TIMEOUT
    """

    request_timeout: float = field(default=30.0, metadata={"env": "EASEMOB_HTTP_REQUEST_TIMEOUT"})

    def validate(self) -> Self:
        """Validate HTTP configuration fields."""
        if self.request_timeout < 0:
            raise ConfigValidationError(
                "request_timeout", self.request_timeout,
                "Must be >= 0 (0 = no timeout).", section="http"
            )
        return self


@dataclass(frozen=True)
class RateLimitConfig(OverridableConfig):
    """
    Client-side fixed-window rate limiting.

    At most `rate` requests are admitted per `interval` seconds. The default
    of 1 request per second matches the quota of the Easemob push endpoints.

    Attributes:
        rate: Permits per window. 0 admits nothing.
            Env var: EASEMOB_RATE_LIMIT_RATE

        interval: Window length in seconds. 0 disables window resets.
            Env var: EASEMOB_RATE_LIMIT_INTERVAL

        max_wait_time: Default number of seconds a call waits for a permit
            before raising AdmissionTimeoutError. None waits indefinitely.
            Accepts "none"/"null"/"unlimited" from the environment.
            Env var: EASEMOB_RATE_LIMIT_MAX_WAIT_TIME
    """

    rate: int = field(default=1, metadata={"env": "EASEMOB_RATE_LIMIT_RATE"})
    interval: float = field(default=1.0, metadata={"env": "EASEMOB_RATE_LIMIT_INTERVAL"})
    max_wait_time: float | None = field(
        default=None,
        metadata={"env": "EASEMOB_RATE_LIMIT_MAX_WAIT_TIME", "converter": _optional_float},
    )

    def with_overrides(
        self,
        overrides: dict[str, Any],
        allow_none_fields: set[str] | None = None,
    ) -> Self:
        """
        Return a new instance with specified fields overridden.

        `max_wait_time` always accepts None, and the strings
        "none"/"null"/"unlimited" are converted to None.
        """
        if not overrides:
            return self

        processed = dict(overrides)
        value = processed.get("max_wait_time")
        if isinstance(value, str) and value.lower() in _NONE_STRINGS:
            processed["max_wait_time"] = None

        merged_allow_none = {"max_wait_time"} | (allow_none_fields or set())
        return super().with_overrides(processed, allow_none_fields=merged_allow_none)

    def validate(self) -> Self:
        """Validate rate limit configuration fields."""
        if self.rate < 0:
            raise ConfigValidationError(
                "rate", self.rate,
                "Must be >= 0.", section="rate_limit"
            )
        if self.interval < 0:
            raise ConfigValidationError(
                "interval", self.interval,
                "Must be >= 0.", section="rate_limit"
            )
        if self.max_wait_time is not None and self.max_wait_time <= 0:
            raise ConfigValidationError(
                "max_wait_time", self.max_wait_time,
                "Must be greater than 0 (or None for unlimited).", section="rate_limit"
            )
        return self


_SECTIONS = ("app", "auth", "http", "rate_limit")


@dataclass(frozen=True)
class EasemobConfig:
    """
    Global configuration for the easemob_push SDK.

    Aggregates all configuration sections. Access via `EASEMOB.config`.

    Attributes:
        app: App coordinates (host, org_name, app_name).
        auth: App credentials.
        http: Transport settings.
        rate_limit: Client-side rate limiting.

    Example:
        >>> from easemob_push import EASEMOB
        >>> EASEMOB.config.rate_limit.rate
        1
        >>> EASEMOB.config.auth.has_credentials()
        False
    """

    app: AppConfig = field(default_factory=AppConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    def with_env_vars(self) -> EasemobConfig:
        """
        Return a new config with EASEMOB_* environment variables applied on top.

        Example:
            >>> config = EasemobConfig().with_env_vars()
        """
        return EasemobConfig(
            app=self.app.with_env_vars(),
            auth=self.auth.with_env_vars(),
            http=self.http.with_env_vars(),
            rate_limit=self.rate_limit.with_env_vars(),
        )

    def with_section_overrides(
        self,
        *,
        app: dict[str, Any] | None = None,
        auth: dict[str, Any] | None = None,
        http: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
    ) -> EasemobConfig:
        """
        Return a new config with overrides applied to nested sections.

        Each section dict only overrides the fields it names.

        Example:
            >>> custom = EasemobConfig().with_section_overrides(
            ...     http={"request_timeout": 5},
            ...     rate_limit={"rate": 10},
            ... )
        """
        return EasemobConfig(
            app=self.app.with_overrides(app or {}),
            auth=self.auth.with_overrides(auth or {}),
            http=self.http.with_overrides(http or {}),
            rate_limit=self.rate_limit.with_overrides(rate_limit or {}),
        )

    def validate(self) -> EasemobConfig:
        """Validate every section. Raises ConfigValidationError on the first failure."""
        for section_name in _SECTIONS:
            getattr(self, section_name).validate()
        return self


# =============================================================================
# Global Configuration Singleton
# =============================================================================


class _Easemob:
    """
    Singleton for SDK configuration.

    Use `EASEMOB.configure()` to customize settings and `EASEMOB.config`
    to access the current configuration.

    Example:
        >>> from easemob_push import EASEMOB
        >>> EASEMOB.configure(auth={"client_id": "..."})
        >>> print(EASEMOB.config.http.request_timeout)
    """

    def __init__(self) -> None:
        """Initialize with defaults and environment variables."""
        self._config: EasemobConfig = EasemobConfig().with_env_vars()

    def configure(
        self,
        *,
        app: dict[str, Any] | None = None,
        auth: dict[str, Any] | None = None,
        http: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
        allow_env_override: bool = True,
    ) -> EasemobConfig:
        """
        Configure SDK settings.

        Call at application startup. Updates the internal configuration and
        returns the configured instance.

        Args:
            app: App overrides (host, org_name, app_name).
            auth: Credential overrides (client_id, client_secret, token_ttl).
            http: Transport overrides (request_timeout).
            rate_limit: Rate limit overrides (rate, interval, max_wait_time).
            allow_env_override: If True (default), env vars are used as fallback
                for fields NOT provided. If False, env vars are ignored.

        Returns:
            The configured EasemobConfig instance.

        Raises:
            ValueError: If any dict contains unknown field names.
            ConfigValidationError: If any config value fails validation.
        """
        base = EasemobConfig()
        if allow_env_override:
            base = base.with_env_vars()

        self._config = base.with_section_overrides(
            app=app,
            auth=auth,
            http=http,
            rate_limit=rate_limit,
        )
        return self.validate()

    @property
    def config(self) -> EasemobConfig:
        """Access current configuration (read-only)."""
        return self._config

    def reset(self) -> EasemobConfig:
        """
        Reset configuration to defaults + env vars.

        Useful for testing to ensure clean state between tests.
        """
        self._config = EasemobConfig().with_env_vars()
        return self.validate()

    def validate(self) -> EasemobConfig:
        """
        Validate current configuration.

        Called automatically on module load and after configure().

        Raises:
            ConfigValidationError: If any config value is invalid.
        """
        return self._config.validate()

    def __repr__(self) -> str:
        return f"EASEMOB(config={self._config!r})"


# Global singleton instance - always reflects current configuration
EASEMOB: _Easemob = _Easemob()
EASEMOB.validate()  # Validate defaults + env vars on module load
